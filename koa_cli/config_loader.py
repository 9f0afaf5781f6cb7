"""Config-file loading.

A config file is JSON (``.json``) or YAML (``.yaml`` / ``.yml``) whose
top-level keys mirror the optional fields of ``ProjectConfiguration`` plus
``installDependencies`` and ``initGit``. Every failure surfaces as a
``ConfigParseError`` carrying the underlying error text.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import ConfigParseError
from .models import ConfigFileOptions

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".json", ".yaml", ".yml")


def parse_config_text(text: str, extension: str) -> dict[str, Any]:
    """Parse raw config text according to *extension*.

    Returns:
        The top-level mapping (empty for an empty YAML document).

    Raises:
        ConfigParseError: Unsupported extension, malformed content, or a
            top level that is not a mapping.
    """
    ext = extension.lower()
    try:
        if ext == ".json":
            data = json.loads(text)
        elif ext in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            raise ConfigParseError(
                f"Failed to parse config file: unsupported format '{ext or '(none)'}'. "
                f"Supported formats: {', '.join(SUPPORTED_EXTENSIONS)}"
            )
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigParseError(f"Failed to parse config file: {exc}") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigParseError(
            "Failed to parse config file: top level must be a mapping, "
            f"got {type(data).__name__}"
        )
    return data


def load_config_file(path: str | Path) -> ConfigFileOptions:
    """Load and validate the config file at *path*.

    Args:
        path: Path to a ``.json``, ``.yaml`` or ``.yml`` file.

    Returns:
        The validated ``ConfigFileOptions``; unset keys stay ``None``.

    Raises:
        ConfigParseError: The file is missing or unreadable, has an
            unsupported extension, fails to parse, or contains unknown keys /
            values of the wrong type.
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise ConfigParseError(
            f"Failed to parse config file: file not found: {config_path}",
            details={"path": str(config_path)},
        )

    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigParseError(
            f"Failed to parse config file: {exc}", details={"path": str(config_path)}
        ) from exc

    data = parse_config_text(text, config_path.suffix)

    try:
        return ConfigFileOptions.model_validate(data)
    except ValidationError as exc:
        raise ConfigParseError(
            f"Failed to parse config file: {exc}", details={"path": str(config_path)}
        ) from exc
