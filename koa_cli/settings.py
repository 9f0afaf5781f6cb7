"""Runtime settings for the Koa CLI.

Settings come from environment variables first and are then overridden by the
global command-line flags (``--verbose``, ``--quiet``, ``--no-color``).
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in _TRUTHY


class Settings(BaseModel):
    """Process-wide knobs that are not part of a project's configuration."""

    verbose: bool = Field(default=False, description="Print debug output and error details")
    quiet: bool = Field(default=False, description="Only print errors")
    color: bool = Field(default=True, description="Colourise terminal output")
    templates_dir: Optional[Path] = Field(
        default=None, description="Alternative directory of Jinja2 project templates"
    )
    command_timeout: int = Field(
        default=600, ge=1, description="Timeout in seconds for install and git commands"
    )

    @classmethod
    def from_env(cls) -> "Settings":
        """Build ``Settings`` from environment variables.

        Recognised variables (all optional):
            KOA_CLI_VERBOSE (or DEBUG), KOA_CLI_QUIET, NO_COLOR,
            KOA_CLI_TEMPLATES_DIR, KOA_CLI_COMMAND_TIMEOUT.
        """
        templates_dir = os.environ.get("KOA_CLI_TEMPLATES_DIR")
        kwargs: dict[str, object] = {
            "verbose": _env_flag("KOA_CLI_VERBOSE") or _env_flag("DEBUG"),
            "quiet": _env_flag("KOA_CLI_QUIET"),
            # https://no-color.org: any non-empty value disables colour
            "color": not os.environ.get("NO_COLOR"),
            "templates_dir": Path(templates_dir) if templates_dir else None,
        }
        if os.environ.get("KOA_CLI_COMMAND_TIMEOUT"):
            kwargs["command_timeout"] = os.environ["KOA_CLI_COMMAND_TIMEOUT"]
        return cls(**kwargs)

    def with_flags(
        self,
        *,
        verbose: bool = False,
        quiet: bool = False,
        no_color: bool = False,
    ) -> "Settings":
        """Return a copy with the global CLI flags applied on top."""
        return self.model_copy(
            update={
                "verbose": self.verbose or verbose,
                "quiet": self.quiet or quiet,
                "color": self.color and not no_color,
            }
        )
