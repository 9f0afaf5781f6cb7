"""Configuration resolution.

Combines the three configuration sources of a ``koa create`` run under a fixed
priority order::

    command line  >  config file  >  interactive answers

Each source is first normalised into a ``PartialConfiguration`` in which unset
fields stay ``None``. The fragments are then folded left to right, lowest
priority first. Scalars are overwritten by any defined higher-priority value;
the nested objects (features, database, cache, authentication) are merged per
sub-key so a higher-priority source only replaces the sub-keys it defines.
Defaults are applied last.
"""

from __future__ import annotations

import json
from functools import reduce
from typing import Any, Callable, Optional

from .config_loader import load_config_file
from .models import (
    DEFAULT_JWT_EXPIRY,
    NESTED_FIELDS,
    VALID_AUTH_TYPES,
    VALID_CACHE_TYPES,
    VALID_DATABASE_TYPES,
    VALID_PACKAGE_MANAGERS,
    VALID_TEMPLATES,
    AuthConfig,
    CacheConfig,
    CommandLineOptions,
    ConfigFileOptions,
    ConfigurationSource,
    ConfigurationSources,
    ConfigValidationResult,
    DatabaseConfig,
    FeatureSet,
    PartialConfiguration,
    PartialSetupOptions,
    ProjectConfiguration,
    PromptAnswers,
    SetupOptions,
)
from .utils import Reporter

DEFAULT_TEMPLATE = "basic"
DEFAULT_PACKAGE_MANAGER = "pnpm"
DEFAULT_TYPESCRIPT = True

ConfigLoader = Callable[[str], ConfigFileOptions]


# ---------------------------------------------------------------------------
# Pure merge helpers
# ---------------------------------------------------------------------------


def _merge_two(lower: dict[str, Any], higher: dict[str, Any]) -> dict[str, Any]:
    """Overlay *higher* on *lower*; nested objects are unioned per sub-key."""
    merged = dict(lower)
    for key, value in higher.items():
        if value is None:
            continue
        if key in NESTED_FIELDS and isinstance(value, dict):
            merged[key] = {**merged.get(key, {}), **value}
        else:
            merged[key] = value
    return merged


def merge_partials(*fragments: PartialConfiguration) -> PartialConfiguration:
    """Fold *fragments* from lowest to highest priority into one fragment.

    Example::

        merge_partials(interactive, config_file, command_line)
    """
    merged = reduce(_merge_two, (fragment.defined() for fragment in fragments), {})
    return PartialConfiguration.model_validate(merged)


def apply_defaults(project_name: str, partial: PartialConfiguration) -> ProjectConfiguration:
    """Turn a merged fragment into a complete ``ProjectConfiguration``.

    database, cache and authentication are only attached when some source
    configured them; their own missing sub-keys are then filled in.
    """
    values = partial.defined()

    database: Optional[DatabaseConfig] = None
    if "database" in values:
        database = DatabaseConfig(**values["database"])

    cache: Optional[CacheConfig] = None
    if "cache" in values:
        cache = CacheConfig(**values["cache"])

    authentication: Optional[AuthConfig] = None
    if "authentication" in values:
        authentication = AuthConfig(**values["authentication"])
        if authentication.type == "jwt" and authentication.expires_in is None:
            authentication.expires_in = DEFAULT_JWT_EXPIRY

    return ProjectConfiguration(
        name=project_name,
        template=values.get("template", DEFAULT_TEMPLATE),
        features=FeatureSet(**values.get("features", {})),
        database=database,
        cache=cache,
        authentication=authentication,
        package_manager=values.get("package_manager", DEFAULT_PACKAGE_MANAGER),
        typescript=values.get("typescript", DEFAULT_TYPESCRIPT),
    )


# ---------------------------------------------------------------------------
# Source normalisation
# ---------------------------------------------------------------------------


def command_line_source(options: CommandLineOptions) -> ConfigurationSource:
    partial = PartialConfiguration(
        template=options.template or None,
        package_manager=options.package_manager or None,
        typescript=options.typescript,
    )
    setup = PartialSetupOptions(
        install_dependencies=False if options.skip_install else None,
        init_git=options.git,
    )
    return ConfigurationSource(label="command line", partial=partial, setup=setup)


def config_file_source(options: ConfigFileOptions) -> ConfigurationSource:
    return ConfigurationSource(
        label="config file",
        partial=options.to_partial(),
        setup=options.to_setup(),
        ignored_keys=options.ignored_keys(),
    )


def interactive_source(answers: PromptAnswers) -> ConfigurationSource:
    partial = PartialConfiguration.model_validate(
        answers.model_dump(
            exclude_none=True,
            include={
                "template",
                "features",
                "database",
                "cache",
                "authentication",
                "package_manager",
                "typescript",
            },
        )
    )
    setup = PartialSetupOptions(
        install_dependencies=answers.install_dependencies,
        init_git=answers.init_git,
    )
    return ConfigurationSource(label="interactive", partial=partial, setup=setup)


# ---------------------------------------------------------------------------
# ConfigurationManager
# ---------------------------------------------------------------------------


class ConfigurationManager:
    """Resolves and validates the configuration of one ``create`` run.

    Attributes:
        loader: Callable that reads a config-file path into
            ``ConfigFileOptions``; replaceable in tests.
    """

    def __init__(self, loader: ConfigLoader | None = None) -> None:
        self.loader: ConfigLoader = loader or load_config_file

    # -- Resolution --------------------------------------------------------

    def collect_sources(
        self,
        command_line_options: CommandLineOptions,
        interactive_answers: PromptAnswers | None = None,
    ) -> ConfigurationSources:
        """Load the config file (if any) and normalise all three sources.

        Raises:
            ConfigParseError: The config file could not be loaded.
        """
        sources = ConfigurationSources(command_line=command_line_source(command_line_options))
        if command_line_options.config:
            sources.config_file = config_file_source(self.loader(command_line_options.config))
        if interactive_answers is not None:
            sources.interactive = interactive_source(interactive_answers)
        return sources

    def resolve(self, project_name: str, sources: ConfigurationSources) -> ProjectConfiguration:
        merged = merge_partials(*(source.partial for source in sources.by_priority()))
        return apply_defaults(project_name, merged)

    def merge_configurations(
        self,
        project_name: str,
        command_line_options: CommandLineOptions,
        interactive_answers: PromptAnswers | None = None,
    ) -> ProjectConfiguration:
        """Merge all configuration sources into a ``ProjectConfiguration``.

        Args:
            project_name: Name of the project being created.
            command_line_options: Parsed ``koa create`` flags; ``config``
                points at an optional JSON/YAML file.
            interactive_answers: Answers from the interactive prompter, if
                prompts were run.

        Returns:
            The merged configuration with defaults applied. Not yet validated;
            see :meth:`validate_configuration`.

        Raises:
            ConfigParseError: The config file could not be loaded.
        """
        sources = self.collect_sources(command_line_options, interactive_answers)
        return self.resolve(project_name, sources)

    def resolve_setup_options(self, sources: ConfigurationSources) -> SetupOptions:
        """Resolve install / git toggles with the same priority order."""
        merged = reduce(
            _merge_two,
            (source.setup.model_dump(exclude_none=True) for source in sources.by_priority()),
            {},
        )
        return SetupOptions(**merged)

    # -- Validation --------------------------------------------------------

    def validate_configuration(self, config: ProjectConfiguration) -> ConfigValidationResult:
        """Check the post-merge invariants. Every violation is reported."""
        errors: list[str] = []

        if not config.name or not config.name.strip():
            errors.append("Project name must not be empty")

        if config.template not in VALID_TEMPLATES:
            errors.append(
                f"Invalid template: {config.template}. "
                f"Valid options: {', '.join(VALID_TEMPLATES)}"
            )

        if config.package_manager not in VALID_PACKAGE_MANAGERS:
            errors.append(
                f"Invalid package manager: {config.package_manager}. "
                f"Valid options: {', '.join(VALID_PACKAGE_MANAGERS)}"
            )

        if config.database is not None:
            if config.database.type not in VALID_DATABASE_TYPES:
                errors.append(
                    f"Invalid database type: {config.database.type}. "
                    f"Valid options: {', '.join(VALID_DATABASE_TYPES)}"
                )
            if not _valid_port(config.database.port):
                errors.append(
                    f"Invalid database port: {config.database.port}. Port range: 1-65535"
                )

        if config.cache is not None:
            if config.cache.type not in VALID_CACHE_TYPES:
                errors.append(
                    f"Invalid cache type: {config.cache.type}. "
                    f"Valid options: {', '.join(VALID_CACHE_TYPES)}"
                )
            if not _valid_port(config.cache.port):
                errors.append(f"Invalid cache port: {config.cache.port}. Port range: 1-65535")
            if not 0 <= config.cache.database <= 15:
                errors.append(
                    f"Invalid cache database index: {config.cache.database}. Index range: 0-15"
                )

        if config.authentication is not None:
            if config.authentication.type not in VALID_AUTH_TYPES:
                errors.append(
                    f"Invalid authentication type: {config.authentication.type}. "
                    f"Valid options: {', '.join(VALID_AUTH_TYPES)}"
                )

        return ConfigValidationResult(valid=not errors, errors=errors)

    # -- Debug output ------------------------------------------------------

    def display_configuration_sources(
        self,
        sources: ConfigurationSources,
        config: ProjectConfiguration,
        reporter: Reporter,
    ) -> None:
        """Show which source contributed what (verbose mode only)."""
        if not reporter.verbose:
            return
        rows: dict[str, str] = {}
        for source in reversed(sources.by_priority()):
            if not source.partial.is_empty():
                rows[source.label] = json.dumps(source.partial.defined(), sort_keys=True)
        rows["resolved"] = config.model_dump_json(exclude_none=True)
        reporter.summary_table(rows, title="Configuration sources")


def _valid_port(port: Optional[int]) -> bool:
    return port is not None and 1 <= port <= 65535
