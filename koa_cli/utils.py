"""Shared utility functions for the Koa CLI.

Provides the Rich-based ``Reporter`` used for every piece of user-facing
output, async command execution for post-generation steps, and a few
file-system helpers.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from pathlib import Path
from typing import Any, Mapping

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table


# ---------------------------------------------------------------------------
# Rich output
# ---------------------------------------------------------------------------


class Reporter:
    """User-facing output channel.

    Normal output goes to stdout, errors and warnings to stderr. ``quiet``
    suppresses everything except errors; ``verbose`` enables ``debug``
    messages. One instance is created by the CLI entry point and passed to
    every component that prints.
    """

    def __init__(
        self,
        console: Console | None = None,
        err_console: Console | None = None,
        *,
        verbose: bool = False,
        quiet: bool = False,
        color: bool = True,
    ) -> None:
        self.console = console or Console(no_color=not color, highlight=False)
        self.err_console = err_console or Console(stderr=True, no_color=not color, highlight=False)
        self.verbose = verbose
        self.quiet = quiet

    # -- Messages ----------------------------------------------------------

    def info(self, message: str) -> None:
        if not self.quiet:
            self.console.print(escape(message))

    def success(self, message: str) -> None:
        """Print a green success message."""
        if not self.quiet:
            self.console.print(f"[bold green]{escape(message)}[/bold green]")

    def hint(self, message: str) -> None:
        if not self.quiet:
            self.console.print(f"[cyan]{escape(message)}[/cyan]")

    def warning(self, message: str) -> None:
        """Print a yellow warning message to stderr."""
        if not self.quiet:
            self.err_console.print(f"[bold yellow]{escape(message)}[/bold yellow]")

    def error(self, message: str) -> None:
        """Print a red error message to stderr. Never silenced."""
        self.err_console.print(f"[bold red]{escape(message)}[/bold red]")

    def debug(self, message: str) -> None:
        if self.verbose and not self.quiet:
            self.console.print(f"[dim]\\[debug] {escape(message)}[/dim]")

    def bullet_list(self, items: list[str], *, style: str = "", stderr: bool = False) -> None:
        """Print *items* as an indented bullet list."""
        if self.quiet and not stderr:
            return
        target = self.err_console if stderr else self.console
        for item in items:
            line = f"  - {escape(item)}"
            target.print(f"[{style}]{line}[/{style}]" if style else line)

    # -- Layout ------------------------------------------------------------

    def rule(self, title: str, style: str = "bright_cyan") -> None:
        if not self.quiet:
            self.console.print()
            self.console.print(Rule(f"[bold {style}] {title} [/bold {style}]", style=style))
            self.console.print()

    def summary_table(self, data: Mapping[str, Any], title: str = "Summary") -> None:
        """Print a two-column key/value summary table."""
        if self.quiet:
            return
        table = Table(title=title, show_header=True, header_style="bold cyan")
        table.add_column("Item", style="dim", no_wrap=True)
        table.add_column("Value")

        for key, value in data.items():
            table.add_row(key, str(value))

        self.console.print(table)
        self.console.print()


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int = 600,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run a command asynchronously and capture its output.

    Args:
        cmd: Program and arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        A ``(returncode, stdout, stderr)`` tuple. A missing executable yields
        return code 127; a timeout yields -1.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
            env=merged_env,
        )
    except FileNotFoundError:
        return (127, "", f"Command not found: {cmd[0]}")

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, "", f"Command timed out after {timeout}s: {' '.join(cmd)}")

    stdout_str = (stdout_bytes or b"").decode("utf-8", errors="replace").strip()
    stderr_str = (stderr_bytes or b"").decode("utf-8", errors="replace").strip()
    return (process.returncode or 0, stdout_str, stderr_str)


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


def remove_path(path: str | Path) -> None:
    """Remove a file or a directory tree. Missing paths are ignored."""
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
    elif target.exists() or target.is_symlink():
        target.unlink()
