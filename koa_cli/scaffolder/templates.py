"""Jinja2 rendering of the bundled Koa project templates.

Templates live in ``koa_cli/scaffolder/templates/`` (or the directory named by
``KOA_CLI_TEMPLATES_DIR``), one directory per scaffold plus ``common/`` for
files every project receives::

    templates/
        common/  README.md.j2, gitignore.j2, src/config/index.js.j2, ...
        basic/   src/app.js.j2, src/server.js.j2
        api/     src/app.js.j2, src/routes/index.js.j2, ...

Output is JavaScript / TypeScript, JSON and Markdown, so HTML autoescaping is
off; values interpolated into JS string literals go through ``js_string``.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path
from typing import Any, Callable, Iterator

from jinja2 import Environment, FileSystemLoader, StrictUndefined

TEMPLATE_SUFFIX = ".j2"
SHARED_SCAFFOLD = "common"

_BUNDLED_TEMPLATES = Path(__file__).parent / "templates"


class TemplateRenderer:
    """Loads ``.j2`` files from a template root and renders them to disk.

    Undefined variables raise ``jinja2.UndefinedError`` instead of rendering
    as empty strings, so a template referencing a key the generator did not
    provide fails loudly.
    """

    def __init__(self, template_dir: str | Path | None = None) -> None:
        self.template_dir = Path(template_dir) if template_dir else _BUNDLED_TEMPLATES
        self.env = Environment(
            loader=FileSystemLoader(str(self.template_dir)),
            autoescape=False,
            undefined=StrictUndefined,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["slugify"] = slugify
        self.env.filters["js_string"] = js_string

    # -- Rendering ---------------------------------------------------------

    def render(self, template_path: str, context: dict[str, Any]) -> str:
        """Render the template at *template_path* (relative to the root)."""
        return self.env.get_template(template_path).render(**context)

    async def render_to_file(
        self,
        template_path: str,
        output_path: str | Path,
        context: dict[str, Any],
    ) -> Path:
        """Render one template into *output_path*, creating parent directories."""
        content = self.render(template_path, context)
        out = Path(output_path)
        await asyncio.to_thread(_write_file, out, content)
        return out

    async def render_tree(
        self,
        scaffold: str,
        output_dir: str | Path,
        context: dict[str, Any],
        *,
        skip_patterns: list[str] | None = None,
        rename: Callable[[str], str] | None = None,
    ) -> list[Path]:
        """Render every template of *scaffold* into *output_dir*.

        ``api/src/routes/index.js.j2`` rendered into ``/tmp/shop`` becomes
        ``/tmp/shop/src/routes/index.js``.

        Args:
            scaffold: Directory under the template root (``common``, ``api``, ...).
            output_dir: Project root to write into.
            context: Template variables.
            skip_patterns: Substrings of the template's relative path; matching
                templates are not rendered (e.g. ``"config/redis"`` when no
                cache is configured).
            rename: Maps the relative output path (POSIX separators, suffix
                stripped) to the path actually written, e.g. ``gitignore`` to
                ``.gitignore`` or ``app.js`` to ``app.ts``.

        Returns:
            The written paths, in template order.
        """
        skip = skip_patterns or []
        out_base = Path(output_dir)
        written: list[Path] = []

        for template_key, relative in self._walk(scaffold):
            if any(pattern in relative for pattern in skip):
                continue
            target = relative[: -len(TEMPLATE_SUFFIX)]
            if rename is not None:
                target = rename(target)
            written.append(await self.render_to_file(template_key, out_base / target, context))

        return written

    # -- Discovery ---------------------------------------------------------

    def scaffolds(self) -> list[str]:
        """Names of the project scaffolds shipped in the template root."""
        if not self.template_dir.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self.template_dir.iterdir()
            if entry.is_dir() and entry.name != SHARED_SCAFFOLD and self._walk(entry.name)
        )

    def _walk(self, scaffold: str) -> list[tuple[str, str]]:
        """``(template key, path relative to the scaffold)`` pairs, sorted."""
        root = self.template_dir / scaffold
        if not root.is_dir():
            return []
        return [
            (f"{scaffold}/{relative}", relative)
            for relative in _relative_paths(root)
        ]


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------


def slugify(value: str) -> str:
    """``"My Koa App"`` -> ``"my-koa-app"``."""
    return re.sub(r"[^a-z0-9]+", "-", value.lower().strip()).strip("-")


def js_string(value: Any) -> str:
    """Quote *value* as a single-quoted JavaScript string literal."""
    escaped = (
        str(value)
        .replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _relative_paths(root: Path) -> Iterator[str]:
    for path in sorted(root.rglob(f"*{TEMPLATE_SUFFIX}")):
        yield path.relative_to(root).as_posix()


def _write_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
