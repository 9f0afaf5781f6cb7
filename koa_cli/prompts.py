"""Interactive prompts for ``koa create``.

Asks the user for everything a ``ProjectConfiguration`` needs, using
``rich.prompt``. Answers are the lowest-priority configuration source: any
value given on the command line or in a config file wins over them.
"""

from __future__ import annotations

from typing import Optional

from rich.console import Console
from rich.prompt import Confirm, IntPrompt, Prompt

from .models import (
    DEFAULT_JWT_EXPIRY,
    DEFAULT_REDIS_PORT,
    AuthConfig,
    CacheConfig,
    DatabaseConfig,
    FeatureSet,
    ProjectConfiguration,
    PromptAnswers,
    default_database_port,
)
from .utils import Reporter

# Swagger is not offered interactively until the api template ships its docs.
_FEATURE_QUESTIONS: list[tuple[str, str, bool]] = [
    ("logging", "Request logging (winston)", True),
    ("cors", "CORS support", True),
    ("helmet", "Helmet security headers", True),
    ("rate_limit", "Rate limiting", False),
    ("redis", "Redis cache", False),
]

_TEMPLATE_CHOICES = ["basic", "api"]
_DATABASE_CHOICES = ["none", "mysql", "postgresql", "mongodb"]
_AUTH_CHOICES = ["none", "jwt", "session"]
_PACKAGE_MANAGER_CHOICES = ["pnpm", "yarn", "npm"]


class InteractivePrompter:
    """Collects ``PromptAnswers`` from a human at the terminal."""

    def __init__(self, reporter: Reporter) -> None:
        self.reporter = reporter

    @property
    def console(self) -> Console:
        return self.reporter.console

    def run_prompts(self) -> PromptAnswers:
        """Ask every question and return the answers."""
        self.console.print("[bold blue]Welcome to the Koa project generator![/bold blue]")
        self.console.print("Answer the following questions to configure your project.\n")

        template = Prompt.ask(
            "Project template", choices=_TEMPLATE_CHOICES, default="basic", console=self.console
        )
        typescript = Confirm.ask("Enable TypeScript?", default=True, console=self.console)

        features = FeatureSet(
            **{
                name: Confirm.ask(f"Enable {label}?", default=default, console=self.console)
                for name, label, default in _FEATURE_QUESTIONS
            }
        )

        wants_backing_services = template in ("api", "fullstack")
        database = self._ask_database() if wants_backing_services else None
        cache = self._ask_cache() if features.redis else None
        authentication = self._ask_authentication() if wants_backing_services else None

        package_manager = Prompt.ask(
            "Package manager",
            choices=_PACKAGE_MANAGER_CHOICES,
            default="pnpm",
            console=self.console,
        )
        install_dependencies = Confirm.ask(
            "Install dependencies now?", default=True, console=self.console
        )
        init_git = Confirm.ask("Initialise a git repository?", default=True, console=self.console)

        return PromptAnswers(
            template=template,
            features=features,
            database=database,
            cache=cache,
            authentication=authentication,
            typescript=typescript,
            package_manager=package_manager,
            install_dependencies=install_dependencies,
            init_git=init_git,
        )

    # -- Sub-sections ------------------------------------------------------

    def _ask_database(self) -> Optional[DatabaseConfig]:
        database_type = Prompt.ask(
            "Database", choices=_DATABASE_CHOICES, default="none", console=self.console
        )
        if database_type == "none":
            return None

        host = Prompt.ask("Database host", default="localhost", console=self.console)
        port = self._ask_int(
            "Database port", default=default_database_port(database_type), low=1, high=65535
        )
        name = Prompt.ask("Database name", default="myapp", console=self.console)
        return DatabaseConfig(type=database_type, host=host, port=port, database=name)

    def _ask_cache(self) -> CacheConfig:
        host = Prompt.ask("Redis host", default="localhost", console=self.console)
        port = self._ask_int("Redis port", default=DEFAULT_REDIS_PORT, low=1, high=65535)
        index = self._ask_int("Redis database index", default=0, low=0, high=15)
        return CacheConfig(type="redis", host=host, port=port, database=index)

    def _ask_authentication(self) -> Optional[AuthConfig]:
        auth_type = Prompt.ask(
            "Authentication", choices=_AUTH_CHOICES, default="none", console=self.console
        )
        if auth_type == "none":
            return None

        auth = AuthConfig(type=auth_type)
        if auth_type == "jwt":
            auth.expires_in = Prompt.ask(
                "JWT expiry", default=DEFAULT_JWT_EXPIRY, console=self.console
            )
        return auth

    def _ask_int(self, question: str, *, default: int, low: int, high: int) -> int:
        """Ask for an integer until it lies in ``[low, high]``."""
        while True:
            value = IntPrompt.ask(question, default=default, console=self.console)
            if low <= value <= high:
                return value
            self.console.print(f"[prompt.invalid]Please enter a number between {low} and {high}")

    # -- Summary -----------------------------------------------------------

    def display_summary(self, config: ProjectConfiguration) -> None:
        """Print the resolved configuration as a table."""
        rows: dict[str, str] = {
            "Project name": config.name,
            "Template": config.template,
            "TypeScript": "yes" if config.typescript else "no",
            "Package manager": config.package_manager,
        }
        enabled = config.features.enabled()
        rows["Features"] = ", ".join(enabled) if enabled else "none"
        if config.database:
            rows["Database"] = (
                f"{config.database.type} ({config.database.host}:{config.database.port})"
            )
        if config.cache:
            rows["Cache"] = f"redis ({config.cache.host}:{config.cache.port})"
        if config.authentication:
            rows["Authentication"] = config.authentication.type
        self.reporter.summary_table(rows, title="Project configuration")
