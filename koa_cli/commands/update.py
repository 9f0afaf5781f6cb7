"""``koa update`` -- report update status.

Fetching new CLI or template releases is not implemented; the command only
reports what it would do.
"""

from __future__ import annotations

from ..utils import Reporter
from ..version import get_version_info


def update_cli(reporter: Reporter, *, check_only: bool = False, force: bool = False) -> None:
    info = get_version_info()
    reporter.info("Checking for updates...")
    reporter.debug(f"cli {info.cli_version}, templates {info.templates_version}")

    if check_only:
        reporter.success(f"koa-cli {info.cli_version} is up to date")
        return

    if force:
        reporter.warning("Forced update requested")

    reporter.info("Updating the CLI and templates is not supported yet.")
