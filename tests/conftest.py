"""Shared pytest fixtures for the Koa CLI test suite.

Provides reusable fixtures for:
- A ``Reporter`` writing into in-memory buffers
- Config-file writers (JSON / YAML)
- Sample configurations and prompt answers
"""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml
from rich.console import Console

from koa_cli.models import (
    AuthConfig,
    DatabaseConfig,
    FeatureSet,
    ProjectConfiguration,
    PromptAnswers,
)
from koa_cli.utils import Reporter


# ---------------------------------------------------------------------------
# Output capture
# ---------------------------------------------------------------------------

class BufferedReporter(Reporter):
    """A ``Reporter`` whose consoles write into ``StringIO`` buffers."""

    def __init__(self, *, verbose: bool = False, quiet: bool = False) -> None:
        self.out = io.StringIO()
        self.err = io.StringIO()
        super().__init__(
            Console(file=self.out, width=200, no_color=True, highlight=False),
            Console(file=self.err, width=200, no_color=True, highlight=False),
            verbose=verbose,
            quiet=quiet,
        )

    @property
    def stdout(self) -> str:
        return self.out.getvalue()

    @property
    def stderr(self) -> str:
        return self.err.getvalue()


@pytest.fixture
def reporter() -> BufferedReporter:
    """Reporter capturing stdout/stderr output in memory."""
    return BufferedReporter()


@pytest.fixture
def verbose_reporter() -> BufferedReporter:
    return BufferedReporter(verbose=True)


@pytest.fixture
def make_reporter() -> Callable[..., BufferedReporter]:
    """Factory for reporters with custom ``verbose`` / ``quiet`` flags."""
    return BufferedReporter


# ---------------------------------------------------------------------------
# Config files
# ---------------------------------------------------------------------------

@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Factory writing a config file into ``tmp_path``.

    Usage::

        path = write_config({"template": "api"}, suffix=".yaml")
    """

    def factory(data: Any, suffix: str = ".json", name: str = "koa.config") -> Path:
        path = tmp_path / f"{name}{suffix}"
        if isinstance(data, str):
            path.write_text(data, encoding="utf-8")
        elif suffix == ".json":
            path.write_text(json.dumps(data), encoding="utf-8")
        else:
            path.write_text(yaml.safe_dump(data), encoding="utf-8")
        return path

    return factory


# ---------------------------------------------------------------------------
# Sample configurations
# ---------------------------------------------------------------------------

@pytest.fixture
def basic_config() -> ProjectConfiguration:
    """Defaults-only configuration for a JavaScript basic project."""
    return ProjectConfiguration(name="my-app", typescript=False)


@pytest.fixture
def api_config() -> ProjectConfiguration:
    """TypeScript api project with PostgreSQL and JWT auth."""
    return ProjectConfiguration(
        name="my-api",
        template="api",
        features=FeatureSet(swagger=True, rate_limit=True),
        database=DatabaseConfig(type="postgresql"),
        authentication=AuthConfig(type="jwt", expires_in="1h"),
        package_manager="npm",
        typescript=True,
    )


@pytest.fixture
def prompt_answers() -> PromptAnswers:
    return PromptAnswers(
        template="api",
        features=FeatureSet(),
        database=DatabaseConfig(type="mysql", host="db.local", port=3307, database="shop"),
        typescript=False,
        package_manager="yarn",
        install_dependencies=True,
        init_git=True,
    )
