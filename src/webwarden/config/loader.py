"""
Configuration loader with YAML file support and environment variable overrides.

Supports loading from:
1. Default values (defined in settings.py)
2. YAML configuration file
3. Environment variables (highest priority)

Environment variables use the pattern: WEBWARDEN__{SECTION}__{KEY}
Example: WEBWARDEN__CRAWLER__MAX_PAGES=50
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from webwarden.config.settings import Settings
from webwarden.core.exceptions import ConfigurationError

DEFAULT_ENV_PREFIX = "WEBWARDEN"
DEFAULT_CONFIG_FILENAME = "webwarden.yaml"

# Module-level settings cache
_settings_instance: Settings | None = None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries, with override taking precedence.

    Args:
        base: Base dictionary to merge into
        override: Dictionary with values to override

    Returns:
        Merged dictionary with override values taking precedence
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def _parse_env_value(value: str) -> Any:
    """
    Parse environment variable string into appropriate Python type.

    Comma-separated values become lists (e.g. accepted content types).
    """
    lowered = value.strip().lower()

    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    if lowered in ("none", "null", ""):
        return None

    try:
        return int(value)
    except ValueError:
        pass

    try:
        return float(value)
    except ValueError:
        pass

    if "," in value:
        return [part.strip() for part in value.split(",") if part.strip()]

    return value


def _load_env_overrides(prefix: str = DEFAULT_ENV_PREFIX) -> dict[str, Any]:
    """
    Load configuration overrides from environment variables.

    Environment variables should follow the pattern:
    {PREFIX}__{SECTION}__{KEY}

    For example:
    - WEBWARDEN__CRAWLER__MAX_PAGES=50
    - WEBWARDEN__LOGGING__LEVEL=DEBUG

    Args:
        prefix: Environment variable prefix to look for

    Returns:
        Dictionary of configuration overrides
    """
    overrides: dict[str, Any] = {}
    prefix_with_sep = f"{prefix}__"

    for key, value in os.environ.items():
        if not key.startswith(prefix_with_sep):
            continue

        key_path = key[len(prefix_with_sep):].lower().split("__")
        if len(key_path) < 2:
            continue

        current = overrides
        for part in key_path[:-1]:
            current = current.setdefault(part, {})

        current[key_path[-1]] = _parse_env_value(value)

    return overrides


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load configuration from a YAML file.

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a mapping
    """
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            details={"path": str(path)},
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Could not read configuration file {path}: {e}",
            details={"path": str(path)},
        ) from e

    # Handle empty files
    if content is None:
        return {}

    if not isinstance(content, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping, got: {type(content).__name__}",
            details={"path": str(path)},
        )

    return content


def load_config(
    config_path: Path | str | None = None,
    env_prefix: str = DEFAULT_ENV_PREFIX,
) -> Settings:
    """
    Load configuration from YAML file with environment variable overrides.

    Priority (highest to lowest):
    1. Environment variables
    2. YAML configuration file
    3. Default values

    Args:
        config_path: Path to YAML configuration file. If None, uses defaults only.
        env_prefix: Prefix for environment variables

    Returns:
        Validated Settings instance

    Raises:
        ConfigurationError: If the file cannot be loaded or values are invalid
    """
    config_data: dict[str, Any] = {}

    if config_path is not None:
        config_data = _deep_merge(config_data, _load_yaml_file(Path(config_path)))

    config_data = _deep_merge(config_data, _load_env_overrides(env_prefix))

    try:
        return Settings(**config_data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            details={"errors": [
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
                for err in e.errors()
            ]},
        ) from e


def save_config(settings: Settings, config_path: Path | str) -> Path:
    """
    Write settings to a YAML file, creating parent directories.

    Args:
        settings: Settings to persist
        config_path: Destination file

    Returns:
        Path written

    Raises:
        ConfigurationError: If the file cannot be written
    """
    path = Path(config_path)
    data = settings.model_dump(mode="json")

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(data, f, sort_keys=False, default_flow_style=False)
    except OSError as e:
        raise ConfigurationError(
            f"Could not write configuration file {path}: {e}",
            details={"path": str(path)},
        ) from e

    return path


def get_settings(
    config_path: Path | str | None = None,
    reload: bool = False,
) -> Settings:
    """
    Get the global Settings instance, loading it if necessary.

    Without an explicit path, the first default config file found is used.

    Args:
        config_path: Path to YAML configuration file (only used on first load or reload)
        reload: If True, force reload configuration from file

    Returns:
        Global Settings instance
    """
    global _settings_instance

    if _settings_instance is None or reload:
        _settings_instance = load_config(config_path or get_default_config_path())

    return _settings_instance


def reset_settings() -> None:
    """
    Reset the cached settings instance.

    Useful for testing or when configuration needs to be reloaded.
    """
    global _settings_instance
    _settings_instance = None


def get_default_config_path() -> Path | None:
    """
    Find the default configuration file path.

    Searches in order:
    1. ./webwarden.yaml
    2. ./config/webwarden.yaml
    3. ~/.webwarden/config.yaml

    Returns:
        Path to configuration file if found, None otherwise
    """
    for path in get_config_search_paths():
        if path.exists():
            return path

    return None


def get_config_search_paths() -> list[Path]:
    """Candidate configuration file locations, highest priority first."""
    return [
        Path.cwd() / DEFAULT_CONFIG_FILENAME,
        Path.cwd() / "config" / DEFAULT_CONFIG_FILENAME,
        Path.home() / ".webwarden" / "config.yaml",
    ]
