"""Unit tests for configuration resolution (koa_cli.manager).

Tests cover:
- Priority order: command line > config file > interactive
- Per-sub-key merging of nested objects
- Defaults applied last; optional sub-objects only when configured
- Setup options (install / git) resolution
- validate_configuration error messages
- Verbose-only source display
"""

from __future__ import annotations

import pytest

from koa_cli.errors import ConfigParseError
from koa_cli.manager import (
    ConfigurationManager,
    apply_defaults,
    command_line_source,
    interactive_source,
    merge_partials,
)
from koa_cli.models import (
    AuthConfig,
    CacheConfig,
    CommandLineOptions,
    ConfigFileOptions,
    DatabaseConfig,
    FeatureSet,
    PartialConfiguration,
    ProjectConfiguration,
    PromptAnswers,
)

pytestmark = pytest.mark.unit


def _partial(**values) -> PartialConfiguration:
    return PartialConfiguration.model_validate(values)


# ---------------------------------------------------------------------------
# merge_partials / apply_defaults
# ---------------------------------------------------------------------------


class TestMergePartials:
    def test_higher_priority_scalar_wins(self):
        merged = merge_partials(
            _partial(template="basic", typescript=True),
            _partial(template="api"),
        )
        assert merged.template == "api"
        assert merged.typescript is True

    def test_nested_objects_merge_per_sub_key(self):
        merged = merge_partials(
            _partial(database={"type": "postgresql", "host": "db.internal"}),
            _partial(database={"port": 6543}),
        )
        assert merged.database.type == "postgresql"
        assert merged.database.host == "db.internal"
        assert merged.database.port == 6543

    def test_features_merge_per_flag(self):
        merged = merge_partials(
            _partial(features={"cors": False, "swagger": True}),
            _partial(features={"swagger": False}),
        )
        assert merged.features.cors is False
        assert merged.features.swagger is False
        assert merged.features.logging is None

    def test_false_is_a_defined_value(self):
        merged = merge_partials(_partial(typescript=True), _partial(typescript=False))
        assert merged.typescript is False

    def test_no_fragments(self):
        assert merge_partials().is_empty()

    def test_three_way_priority(self):
        interactive = _partial(template="basic", typescript=True, package_manager="npm")
        config_file = _partial(template="basic", typescript=False)
        command_line = _partial(template="api")
        config = apply_defaults("x", merge_partials(interactive, config_file, command_line))
        assert config.template == "api"
        assert config.typescript is False
        assert config.package_manager == "npm"

    def test_feature_flags_across_sources(self):
        config_file = _partial(features={"cors": False, "redis": False})
        command_line = _partial(features={"redis": True})
        config = apply_defaults("x", merge_partials(config_file, command_line))
        assert config.features.redis is True
        assert config.features.cors is False
        assert config.features.logging is True

    def test_merging_is_idempotent(self):
        fragment = _partial(template="api", features={"cors": False})
        once = merge_partials(fragment)
        assert merge_partials(once, once) == once


class TestApplyDefaults:
    def test_all_defaults(self):
        config = apply_defaults("my-app", PartialConfiguration())
        assert config == ProjectConfiguration(name="my-app")

    def test_sub_objects_only_when_configured(self):
        config = apply_defaults("my-app", _partial(template="api"))
        assert config.database is None
        assert config.cache is None
        assert config.authentication is None

    def test_database_sub_keys_defaulted(self):
        config = apply_defaults("my-app", _partial(database={"type": "mongodb"}))
        assert config.database == DatabaseConfig(
            type="mongodb", host="localhost", port=27017, database="myapp"
        )

    def test_cache_sub_keys_defaulted(self):
        config = apply_defaults("my-app", _partial(cache={"host": "cache.local"}))
        assert config.cache == CacheConfig(host="cache.local", port=6379, database=0)

    def test_jwt_expiry_defaulted(self):
        config = apply_defaults("my-app", _partial(authentication={"type": "jwt"}))
        assert config.authentication.expires_in == "7d"

    def test_session_auth_has_no_expiry(self):
        config = apply_defaults("my-app", _partial(authentication={"type": "session"}))
        assert config.authentication.expires_in is None

    def test_features_filled_from_defaults(self):
        config = apply_defaults("my-app", _partial(features={"cors": False}))
        assert config.features == FeatureSet(cors=False)


# ---------------------------------------------------------------------------
# Source normalisation
# ---------------------------------------------------------------------------


class TestSourceNormalisation:
    def test_command_line_unset_flags_stay_unset(self):
        source = command_line_source(CommandLineOptions())
        assert source.partial.is_empty()
        assert source.setup.model_dump(exclude_none=True) == {}

    def test_skip_install_maps_to_install_false(self):
        source = command_line_source(CommandLineOptions(skip_install=True, git=False))
        assert source.setup.install_dependencies is False
        assert source.setup.init_git is False

    def test_empty_strings_are_unset(self):
        source = command_line_source(CommandLineOptions(template="", package_manager=""))
        assert source.partial.is_empty()

    def test_interactive_answers(self, prompt_answers: PromptAnswers):
        source = interactive_source(prompt_answers)
        defined = source.partial.defined()
        assert defined["template"] == "api"
        assert defined["database"]["host"] == "db.local"
        assert "cache" not in defined
        assert source.setup.install_dependencies is True


# ---------------------------------------------------------------------------
# ConfigurationManager.merge_configurations
# ---------------------------------------------------------------------------


class TestMergeConfigurations:
    def test_command_line_beats_config_file(self, write_config):
        path = write_config({"template": "basic"})
        config = ConfigurationManager().merge_configurations(
            "my-app", CommandLineOptions(template="api", config=str(path))
        )
        assert config.template == "api"

    def test_config_file_beats_interactive(self, write_config, prompt_answers):
        path = write_config({"packageManager": "npm"}, suffix=".yaml")
        config = ConfigurationManager().merge_configurations(
            "my-app", CommandLineOptions(config=str(path)), prompt_answers
        )
        assert config.package_manager == "npm"
        assert config.template == "api"

    def test_database_merged_across_sources(self, write_config, prompt_answers):
        path = write_config({"database": {"port": 3310}})
        config = ConfigurationManager().merge_configurations(
            "my-app", CommandLineOptions(config=str(path)), prompt_answers
        )
        assert config.database.type == "mysql"
        assert config.database.host == "db.local"
        assert config.database.database == "shop"
        assert config.database.port == 3310

    def test_repeated_merges_are_identical(self, write_config, prompt_answers):
        path = write_config(
            {"database": {"port": 3310}, "features": {"redis": True}, "cache": {"port": 6380}},
            suffix=".yaml",
        )
        manager = ConfigurationManager()
        options = CommandLineOptions(config=str(path), template="api")

        first = manager.merge_configurations("my-app", options, prompt_answers)
        second = manager.merge_configurations("my-app", options, prompt_answers)

        assert first.model_dump() == second.model_dump()
        assert first.model_dump_json() == second.model_dump_json()
        assert first.template == "api"
        assert first.database.port == 3310

    def test_defaults_without_any_source(self):
        config = ConfigurationManager().merge_configurations("my-app", CommandLineOptions())
        assert config.template == "basic"
        assert config.package_manager == "pnpm"
        assert config.typescript is True
        assert config.features == FeatureSet()

    def test_name_comes_from_argument(self):
        config = ConfigurationManager().merge_configurations("svc", CommandLineOptions())
        assert config.name == "svc"

    def test_missing_config_file_propagates(self, tmp_path):
        manager = ConfigurationManager()
        with pytest.raises(ConfigParseError):
            manager.merge_configurations(
                "my-app", CommandLineOptions(config=str(tmp_path / "missing.json"))
            )

    def test_custom_loader(self):
        calls: list[str] = []

        def loader(path: str) -> ConfigFileOptions:
            calls.append(path)
            return ConfigFileOptions(template="api")

        manager = ConfigurationManager(loader=loader)
        config = manager.merge_configurations("x", CommandLineOptions(config="koa.json"))
        assert calls == ["koa.json"]
        assert config.template == "api"

    def test_loader_not_called_without_config(self):
        def loader(path: str) -> ConfigFileOptions:
            raise AssertionError("loader should not be called")

        config = ConfigurationManager(loader=loader).merge_configurations(
            "x", CommandLineOptions()
        )
        assert config.template == "basic"


class TestResolveSetupOptions:
    def test_defaults_to_install_and_git(self):
        manager = ConfigurationManager()
        sources = manager.collect_sources(CommandLineOptions())
        setup = manager.resolve_setup_options(sources)
        assert setup.install_dependencies is True
        assert setup.init_git is True

    def test_command_line_overrides_config_file(self, write_config):
        path = write_config({"installDependencies": True, "initGit": False})
        manager = ConfigurationManager()
        sources = manager.collect_sources(CommandLineOptions(config=str(path), skip_install=True))
        setup = manager.resolve_setup_options(sources)
        assert setup.install_dependencies is False
        assert setup.init_git is False

    def test_config_file_overrides_interactive(self, write_config, prompt_answers):
        path = write_config({"initGit": False})
        manager = ConfigurationManager()
        sources = manager.collect_sources(CommandLineOptions(config=str(path)), prompt_answers)
        assert manager.resolve_setup_options(sources).init_git is False


# ---------------------------------------------------------------------------
# validate_configuration
# ---------------------------------------------------------------------------


class TestValidateConfiguration:
    def test_valid_defaults(self):
        result = ConfigurationManager().validate_configuration(ProjectConfiguration(name="x"))
        assert result.valid is True
        assert result.errors == []

    def test_invalid_database_port(self):
        config = ProjectConfiguration(name="x", database=DatabaseConfig(type="mysql", port=99999))
        result = ConfigurationManager().validate_configuration(config)
        assert result.valid is False
        assert result.errors == ["Invalid database port: 99999. Port range: 1-65535"]

    def test_invalid_template(self):
        result = ConfigurationManager().validate_configuration(
            ProjectConfiguration(name="x", template="spa")
        )
        assert result.errors == ["Invalid template: spa. Valid options: basic, api, fullstack"]

    def test_every_violation_reported(self):
        config = ProjectConfiguration(
            name=" ",
            template="spa",
            package_manager="bun",
            database=DatabaseConfig(type="sqlite", port=0),
            cache=CacheConfig(type="memcached", port=70000, database=16),
            authentication=AuthConfig(type="oauth"),
        )
        errors = ConfigurationManager().validate_configuration(config).errors
        assert len(errors) == 9
        assert any(e.startswith("Invalid package manager: bun") for e in errors)
        assert any(e.startswith("Invalid database type: sqlite") for e in errors)
        assert any(e.startswith("Invalid cache type: memcached") for e in errors)
        assert any(e.startswith("Invalid cache port: 70000") for e in errors)
        assert any(e.startswith("Invalid cache database index: 16") for e in errors)
        assert any(e.startswith("Invalid authentication type: oauth") for e in errors)

    @pytest.mark.parametrize("port", [1, 65535])
    def test_port_bounds_inclusive(self, port: int):
        config = ProjectConfiguration(name="x", database=DatabaseConfig(port=port))
        assert ConfigurationManager().validate_configuration(config).valid is True

    def test_port_from_config_file_is_reported(self, write_config):
        path = write_config({"database": {"type": "mysql", "port": 99999}})
        manager = ConfigurationManager()
        config = manager.merge_configurations("x", CommandLineOptions(config=str(path)))
        result = manager.validate_configuration(config)
        assert "Invalid database port: 99999. Port range: 1-65535" in result.errors


# ---------------------------------------------------------------------------
# display_configuration_sources
# ---------------------------------------------------------------------------


class TestDisplayConfigurationSources:
    def test_silent_unless_verbose(self, reporter):
        manager = ConfigurationManager()
        sources = manager.collect_sources(CommandLineOptions(template="api"))
        manager.display_configuration_sources(
            sources, manager.resolve("x", sources), reporter
        )
        assert reporter.stdout == ""

    def test_verbose_shows_each_source(self, verbose_reporter, write_config):
        path = write_config({"packageManager": "npm"})
        manager = ConfigurationManager()
        sources = manager.collect_sources(CommandLineOptions(template="api", config=str(path)))
        manager.display_configuration_sources(
            sources, manager.resolve("x", sources), verbose_reporter
        )
        output = verbose_reporter.stdout
        assert "Configuration sources" in output
        assert "command line" in output
        assert "config file" in output
        assert "resolved" in output
        assert "interactive" not in output
