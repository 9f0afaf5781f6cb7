"""Error taxonomy and the top-level error handler.

Validators return structured results; the orchestration layer converts a
failed result into one of the ``KoaCliError`` subclasses below. ``cli.main``
catches everything, formats it with ``ErrorHandler`` and exits with status 1.
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from .utils import Reporter


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class KoaCliError(Exception):
    """Base class for every expected, user-facing failure."""

    code = "UNKNOWN_ERROR"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NameValidationError(KoaCliError):
    """One or more project-name rules were violated."""

    code = "NAME_VALIDATION_ERROR"


class ConfigParseError(KoaCliError):
    """The config file is missing, has an unsupported extension, or fails to parse."""

    code = "CONFIG_PARSE_ERROR"


class ConfigValidationError(KoaCliError):
    """The merged configuration violates a field invariant."""

    code = "CONFIG_VALIDATION_ERROR"

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(
            "Configuration validation failed: " + "; ".join(self.errors),
            details={"errors": self.errors},
        )


class DirectoryConflictError(KoaCliError):
    """The target directory exists and ``--force`` was not given."""

    code = "DIRECTORY_CONFLICT_ERROR"


class GenerationError(KoaCliError):
    """Rendering, installing or git initialisation failed."""

    code = "GENERATION_ERROR"


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


class FormattedError(BaseModel):
    """An exception prepared for display."""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)
    suggestions: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


_SUGGESTIONS: dict[str, list[str]] = {
    NameValidationError.code: [
        "Use lowercase letters, digits and single hyphens, e.g. my-koa-app",
    ],
    ConfigParseError.code: [
        "Check that the config file exists and ends in .json, .yaml or .yml",
    ],
    ConfigValidationError.code: [
        "Fix the listed values in your config file or command-line flags",
    ],
    DirectoryConflictError.code: [
        "Choose another project name or pass --force to overwrite the directory",
    ],
}


class ErrorHandler:
    """Maps exceptions to ``FormattedError`` and prints them."""

    def __init__(self, reporter: Reporter) -> None:
        self.reporter = reporter

    def handle_error(
        self, error: BaseException, context: dict[str, Any] | None = None
    ) -> FormattedError:
        """Build a ``FormattedError`` for *error*.

        Args:
            error: The exception that aborted the command.
            context: Where it happened (``command``, ``project_name``, ...).
        """
        if isinstance(error, KoaCliError):
            code = error.code
            message = error.message
            details = dict(error.details)
        else:
            code = KoaCliError.code
            message = str(error) or type(error).__name__
            details = {
                "exception": type(error).__name__,
                "traceback": "".join(
                    traceback.format_exception(type(error), error, error.__traceback__)
                ),
            }

        if context:
            details["context"] = context

        return FormattedError(
            code=code,
            message=message,
            details=details,
            suggestions=self._suggestions(code, message),
        )

    def log_error(self, formatted: FormattedError) -> None:
        """Print *formatted* to stderr; details only in verbose mode."""
        self.reporter.error(f"Error [{formatted.code}]: {formatted.message}")
        for suggestion in formatted.suggestions:
            self.reporter.err_console.print(f"  hint: {suggestion}", style="cyan", markup=False)
        if self.reporter.verbose and formatted.details:
            for key, value in formatted.details.items():
                self.reporter.err_console.print(f"  {key}: {value}", style="dim", markup=False)

    @staticmethod
    def _suggestions(code: str, message: str) -> list[str]:
        suggestions = list(_SUGGESTIONS.get(code, []))
        lowered = message.lower()
        if "permission" in lowered:
            suggestions.append(
                "Check file permissions and try again with appropriate privileges"
            )
        if "network" in lowered or "timed out" in lowered:
            suggestions.append("Check your internet connection and try again")
        return suggestions
