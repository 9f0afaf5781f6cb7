"""Version information for the CLI and its bundled templates."""

from __future__ import annotations

from datetime import datetime
from importlib.metadata import PackageNotFoundError, version

from .models import VersionInfo

DISTRIBUTION_NAME = "koa-cli"
FALLBACK_VERSION = "1.0.0"
TEMPLATES_VERSION = "1.0.0"


def get_cli_version() -> str:
    """Return the installed distribution version, or the fallback when not installed."""
    try:
        return version(DISTRIBUTION_NAME)
    except PackageNotFoundError:
        return FALLBACK_VERSION


def get_version_info() -> VersionInfo:
    # TODO: persist the last update check once `koa update` talks to a release index.
    return VersionInfo(
        cli_version=get_cli_version(),
        templates_version=TEMPLATES_VERSION,
        last_update_check=datetime.now(),
    )
