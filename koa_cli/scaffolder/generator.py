"""Main scaffolding orchestrator.

Takes a validated ``ProjectConfiguration`` and generates a Koa.js project
directory: the shared ``common/`` templates, the selected template's own tree,
and a ``package.json`` whose dependencies follow the enabled features.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from jinja2 import TemplateError
from pydantic import BaseModel, Field

from ..errors import GenerationError
from ..models import ProjectConfiguration
from ..utils import run_command
from .package_json import render_package_json, uses_redis
from .templates import SHARED_SCAFFOLD, TemplateRenderer


# Template file name -> dotfile written into the project.
_DOTFILES: dict[str, str] = {
    "gitignore": ".gitignore",
    "env.example": ".env.example",
    "editorconfig": ".editorconfig",
}


class GenerationResult(BaseModel):
    """Outcome of :meth:`ProjectGenerator.generate`."""

    success: bool = True
    project_path: Path
    generated_files: list[Path] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Main generator
# ---------------------------------------------------------------------------


class ProjectGenerator:
    """Renders a Koa.js skeleton for one ``ProjectConfiguration``.

    The generated tree contains:
    - ``src/app`` and ``src/server`` entry points (plus router, controllers
      and error middleware for the api template)
    - feature modules (logger, database, redis, auth) when enabled
    - ``package.json``, README, ``.gitignore``, ``.env.example``,
      ``.editorconfig`` and ``tsconfig.json`` for TypeScript projects

    Source files are written with a ``.ts`` extension when ``typescript`` is on.
    """

    def __init__(
        self,
        config: ProjectConfiguration,
        renderer: TemplateRenderer | None = None,
        *,
        command_timeout: int = 600,
    ) -> None:
        self.config = config
        self.renderer = renderer or TemplateRenderer()
        self.command_timeout = command_timeout

    # -- Public API --------------------------------------------------------

    async def generate(self, output_dir: str | Path) -> GenerationResult:
        """Generate the project under ``<output_dir>/<name>``.

        Raises:
            GenerationError: The template has no scaffold or fails to render.
        """
        template = self.config.template
        if template not in self.renderer.scaffolds():
            raise GenerationError(
                f"Template '{template}' is not available yet",
                details={"template": template},
            )

        project_root = Path(output_dir) / self.config.name
        await asyncio.to_thread(project_root.mkdir, parents=True, exist_ok=True)

        context = self.build_context()
        skip = self.skip_patterns()

        try:
            written = await self.renderer.render_tree(
                SHARED_SCAFFOLD, project_root, context, skip_patterns=skip, rename=self.output_name
            )
            written += await self.renderer.render_tree(
                template, project_root, context, skip_patterns=skip, rename=self.output_name
            )
        except TemplateError as exc:
            raise GenerationError(f"Failed to render template: {exc}") from exc

        package_json = project_root / "package.json"
        await asyncio.to_thread(
            package_json.write_text, render_package_json(self.config), "utf-8"
        )
        written.append(package_json)

        return GenerationResult(project_path=project_root, generated_files=written)

    async def install_dependencies(self, project_path: str | Path) -> None:
        """Run ``<package manager> install`` inside *project_path*."""
        manager = self.config.package_manager
        await self._run([manager, "install"], project_path, f"{manager} install")

    async def init_git(self, project_path: str | Path) -> None:
        """Initialise an empty git repository inside *project_path*."""
        await self._run(["git", "init"], project_path, "git init")

    # -- Context building --------------------------------------------------

    def build_context(self) -> dict[str, Any]:
        """Build the Jinja2 template context from the project configuration."""
        config = self.config
        return {
            "project_name": config.name,
            "template": config.template,
            "typescript": config.typescript,
            "ext": "ts" if config.typescript else "js",
            "package_manager": config.package_manager,
            "features": config.features.model_dump(),
            "enabled_features": config.features.enabled(),
            "database": config.database.model_dump() if config.database else None,
            "cache": config.cache.model_dump() if config.cache else None,
            "authentication": (
                config.authentication.model_dump() if config.authentication else None
            ),
            "redis_enabled": uses_redis(config),
            "import_stmt": self._import_stmt,
            "export_default": self._export_default,
        }

    def skip_patterns(self) -> list[str]:
        """Template paths to leave out for disabled features."""
        config = self.config
        skip: list[str] = []
        if not config.typescript:
            skip.append("tsconfig.json")
        if not config.features.logging:
            skip.append("utils/logger")
        if config.database is None:
            skip.append("config/database")
        if not uses_redis(config):
            skip.append("config/redis")
        if config.authentication is None:
            skip.append("middlewares/auth")
        return skip

    def output_name(self, relative: str) -> str:
        """Map a template's relative output path to the written path."""
        name = _DOTFILES.get(relative, relative)
        if self.config.typescript and name.endswith(".js"):
            name = name[: -len(".js")] + ".ts"
        return name

    # -- Module syntax helpers (exposed to templates) ----------------------

    def _import_stmt(self, binding: str, module: str) -> str:
        if self.config.typescript:
            return f"import {binding} from '{module}';"
        return f"const {binding} = require('{module}');"

    def _export_default(self, name: str) -> str:
        if self.config.typescript:
            return f"export default {name};"
        return f"module.exports = {name};"

    # -- Internal ----------------------------------------------------------

    async def _run(self, cmd: list[str], cwd: str | Path, label: str) -> None:
        returncode, _stdout, stderr = await run_command(
            cmd, cwd=cwd, timeout=self.command_timeout
        )
        if returncode != 0:
            raise GenerationError(
                f"{label} failed with exit code {returncode}: {stderr}",
                details={"command": cmd, "cwd": str(cwd)},
            )
