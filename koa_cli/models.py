"""Pydantic v2 models for the Koa CLI configuration pipeline.

Defines the final ``ProjectConfiguration`` handed to the scaffolder, the
partial (optional-everywhere) fragments produced by each configuration source,
the per-source option structs (command line, config file, interactive answers)
and the result objects returned by the validators.

The final models are intentionally lenient on enumerated values and ports
(plain ``str`` / ``int``): user input must survive merging unchanged so that
``ConfigurationManager.validate_configuration`` can report it with a readable
message instead of a raw pydantic traceback.
"""

from __future__ import annotations

import argparse
from datetime import datetime
from typing import Literal, Optional, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

TemplateType = Literal["basic", "api", "fullstack"]
PackageManager = Literal["npm", "yarn", "pnpm"]
DatabaseType = Literal["mysql", "postgresql", "mongodb"]
CacheType = Literal["redis"]
AuthType = Literal["jwt", "session"]

VALID_TEMPLATES: tuple[str, ...] = get_args(TemplateType)
VALID_PACKAGE_MANAGERS: tuple[str, ...] = get_args(PackageManager)
VALID_DATABASE_TYPES: tuple[str, ...] = get_args(DatabaseType)
VALID_CACHE_TYPES: tuple[str, ...] = get_args(CacheType)
VALID_AUTH_TYPES: tuple[str, ...] = get_args(AuthType)

DEFAULT_DATABASE_PORTS: dict[str, int] = {
    "mysql": 3306,
    "postgresql": 5432,
    "mongodb": 27017,
}
DEFAULT_REDIS_PORT = 6379
DEFAULT_JWT_EXPIRY = "7d"

# Nested sub-objects merged per sub-key rather than replaced wholesale.
NESTED_FIELDS: tuple[str, ...] = ("features", "database", "cache", "authentication")


def default_database_port(database_type: str) -> int:
    """Return the conventional port for *database_type* (MySQL when unknown)."""
    return DEFAULT_DATABASE_PORTS.get(database_type, DEFAULT_DATABASE_PORTS["mysql"])


class _Model(BaseModel):
    """Base model: accepts both snake_case names and camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)


class _PartialModel(BaseModel):
    """Base for optional-everywhere fragments; unknown keys are rejected."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


# ---------------------------------------------------------------------------
# Final configuration
# ---------------------------------------------------------------------------

class FeatureSet(_Model):
    """Cross-cutting capabilities toggled independently of the template."""

    logging: bool = Field(default=True, description="Winston request/application logging")
    cors: bool = Field(default=True, description="@koa/cors middleware")
    helmet: bool = Field(default=True, description="koa-helmet security headers")
    rate_limit: bool = Field(default=False, alias="rateLimit", description="koa-ratelimit")
    swagger: bool = Field(default=False, description="Swagger UI for the API")
    redis: bool = Field(default=False, description="Redis cache client")

    def enabled(self) -> list[str]:
        """Return the names of every enabled feature, in declaration order."""
        return [name for name, value in self.model_dump().items() if value]


class DatabaseConfig(_Model):
    """Database connection settings. ``port`` defaults by ``type``."""

    type: str = Field(default="mysql")
    host: str = Field(default="localhost")
    port: Optional[int] = Field(default=None)
    database: str = Field(default="myapp")
    username: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="after")
    def _default_port(self) -> "DatabaseConfig":
        if self.port is None:
            self.port = default_database_port(self.type)
        return self


class CacheConfig(_Model):
    """Redis cache connection settings."""

    type: str = Field(default="redis")
    host: str = Field(default="localhost")
    port: int = Field(default=DEFAULT_REDIS_PORT)
    password: Optional[str] = None
    database: int = Field(default=0, description="Redis logical database index (0-15)")


class AuthConfig(_Model):
    """Authentication strategy. ``expires_in`` only applies to JWT."""

    type: str = Field(default="jwt")
    secret: Optional[str] = None
    expires_in: Optional[str] = Field(default=None, alias="expiresIn")


class ProjectConfiguration(_Model):
    """Fully resolved settings for one generated project."""

    name: str
    template: str = Field(default="basic")
    features: FeatureSet = Field(default_factory=FeatureSet)
    database: Optional[DatabaseConfig] = None
    cache: Optional[CacheConfig] = None
    authentication: Optional[AuthConfig] = None
    package_manager: str = Field(default="pnpm", alias="packageManager")
    typescript: bool = Field(default=True)


# ---------------------------------------------------------------------------
# Partial fragments (one per configuration source)
# ---------------------------------------------------------------------------

class PartialFeatureSet(_PartialModel):
    logging: Optional[bool] = None
    cors: Optional[bool] = None
    helmet: Optional[bool] = None
    rate_limit: Optional[bool] = Field(default=None, alias="rateLimit")
    swagger: Optional[bool] = None
    redis: Optional[bool] = None


class PartialDatabaseConfig(_PartialModel):
    type: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None


class PartialCacheConfig(_PartialModel):
    type: Optional[str] = None
    host: Optional[str] = None
    port: Optional[int] = None
    password: Optional[str] = None
    database: Optional[int] = None


class PartialAuthConfig(_PartialModel):
    type: Optional[str] = None
    secret: Optional[str] = None
    expires_in: Optional[str] = Field(default=None, alias="expiresIn")


class PartialConfiguration(_PartialModel):
    """A ``ProjectConfiguration`` where every field may be left unset.

    ``None`` always means "this source did not say"; it never overrides a
    value from another source.
    """

    template: Optional[str] = None
    features: Optional[PartialFeatureSet] = None
    database: Optional[PartialDatabaseConfig] = None
    cache: Optional[PartialCacheConfig] = None
    authentication: Optional[PartialAuthConfig] = None
    package_manager: Optional[str] = Field(default=None, alias="packageManager")
    typescript: Optional[bool] = None

    def defined(self) -> dict[str, object]:
        """Return only the fields this fragment defines, nested ``None``s dropped."""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.defined()


class PartialSetupOptions(_PartialModel):
    """Post-generation toggles as stated by one source."""

    install_dependencies: Optional[bool] = Field(default=None, alias="installDependencies")
    init_git: Optional[bool] = Field(default=None, alias="initGit")


class SetupOptions(BaseModel):
    """Resolved post-generation toggles."""

    install_dependencies: bool = True
    init_git: bool = True


# ---------------------------------------------------------------------------
# Per-source option structs
# ---------------------------------------------------------------------------

class CommandLineOptions(BaseModel):
    """Flags accepted by ``koa create``. Unset flags stay ``None``."""

    template: Optional[str] = None
    config: Optional[str] = None
    skip_install: Optional[bool] = None
    package_manager: Optional[str] = None
    typescript: Optional[bool] = None
    git: Optional[bool] = None
    force: Optional[bool] = None

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> "CommandLineOptions":
        """Build options from a parsed ``argparse`` namespace."""
        return cls(**{name: getattr(args, name, None) for name in cls.model_fields})


class ConfigFileOptions(PartialConfiguration):
    """Top-level keys of a JSON/YAML config file.

    Accepts the project-configuration keys plus ``installDependencies`` and
    ``initGit``. Keys may be written camelCase or snake_case. Other top-level
    keys (``name``, ``$schema``, ...) are kept aside and reported by
    ``ignored_keys``; unknown keys inside nested objects are still rejected.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    install_dependencies: Optional[bool] = Field(default=None, alias="installDependencies")
    init_git: Optional[bool] = Field(default=None, alias="initGit")

    def ignored_keys(self) -> list[str]:
        return sorted(self.model_extra or {})

    def to_partial(self) -> PartialConfiguration:
        return PartialConfiguration.model_validate(
            self.model_dump(exclude_none=True, include=set(PartialConfiguration.model_fields))
        )

    def to_setup(self) -> PartialSetupOptions:
        return PartialSetupOptions(
            install_dependencies=self.install_dependencies,
            init_git=self.init_git,
        )


class PromptAnswers(BaseModel):
    """Answers collected by the interactive prompter."""

    template: str
    features: FeatureSet
    database: Optional[DatabaseConfig] = None
    cache: Optional[CacheConfig] = None
    authentication: Optional[AuthConfig] = None
    typescript: bool
    package_manager: str
    install_dependencies: bool = True
    init_git: bool = True


class ConfigurationSource(BaseModel):
    """One normalised configuration source."""

    label: str
    partial: PartialConfiguration = Field(default_factory=PartialConfiguration)
    setup: PartialSetupOptions = Field(default_factory=PartialSetupOptions)
    ignored_keys: list[str] = Field(default_factory=list)


class ConfigurationSources(BaseModel):
    """The three normalised sources of one ``create`` invocation."""

    command_line: ConfigurationSource = Field(
        default_factory=lambda: ConfigurationSource(label="command line")
    )
    config_file: ConfigurationSource = Field(
        default_factory=lambda: ConfigurationSource(label="config file")
    )
    interactive: ConfigurationSource = Field(
        default_factory=lambda: ConfigurationSource(label="interactive")
    )

    def by_priority(self) -> tuple[ConfigurationSource, ...]:
        """Sources ordered from lowest to highest priority."""
        return (self.interactive, self.config_file, self.command_line)


# ---------------------------------------------------------------------------
# Validation results
# ---------------------------------------------------------------------------

class ValidationIssue(BaseModel):
    """A single validation error or warning, typed by a string code."""

    type: str
    message: str


class ValidationResult(BaseModel):
    """Outcome of project-name validation. Warnings never affect ``valid``."""

    valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationIssue] = Field(default_factory=list)

    def error_types(self) -> list[str]:
        return [issue.type for issue in self.errors]

    def warning_types(self) -> list[str]:
        return [issue.type for issue in self.warnings]


class ConfigValidationResult(BaseModel):
    """Outcome of post-merge configuration validation."""

    valid: bool
    errors: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Version information
# ---------------------------------------------------------------------------

class VersionInfo(BaseModel):
    cli_version: str
    templates_version: str
    last_update_check: datetime
