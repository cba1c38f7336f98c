"""Configuration loader module.

This module provides functions for loading configuration from various sources
and transforming it into a validated SluiceConfig object.
"""

from typing import Dict, Any, Optional, List
import os
import re

import yaml

from .schema import SluiceConfig
from .exceptions import ConfigError

_ENV_PATTERN = re.compile(r"\$\{([^}]+)\}")

# Top-level sections; everything after the section prefix is one field name.
_SECTIONS = ("dispatch", "logging")


def merge_dicts(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary with values that override the base

    Returns:
        Merged dictionary where override values take precedence
    """
    result = base.copy()

    for key, value in override.items():
        if (key in result and
            isinstance(result[key], dict) and
            isinstance(value, dict)):
            result[key] = merge_dicts(result[key], value)
        else:
            result[key] = value

    return result


def _substitute(value: str) -> str:
    return _ENV_PATTERN.sub(lambda match: os.environ.get(match.group(1), ""), value)


def resolve_env_vars(config: Any) -> Any:
    """Replace ${VAR} patterns with environment variables.

    Args:
        config: Configuration value (dict, list or scalar)

    Returns:
        Configuration with environment variables resolved
    """
    if isinstance(config, dict):
        return {key: resolve_env_vars(value) for key, value in config.items()}
    if isinstance(config, list):
        return [resolve_env_vars(item) for item in config]
    if isinstance(config, str) and "${" in config:
        return _substitute(config)
    return config


def load_yaml_file(path: str) -> Dict[str, Any]:
    """Load configuration from YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Dictionary containing configuration from YAML

    Raises:
        ConfigError: If file cannot be read or parsed
    """
    try:
        with open(path, 'r') as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML: {e}", path=path)
    except OSError as e:
        raise ConfigError(f"Error reading file: {e}", path=path)

    if not isinstance(data, dict):
        raise ConfigError("Top level must be a mapping", path=path)
    return data


def _normalize_env_key(env_key: str) -> List[str]:
    """Normalize environment variable key to configuration path.

    Args:
        env_key: Environment variable key without prefix (e.g., "DISPATCH_MAX_BACKLOG")

    Returns:
        List of path segments (e.g., ["dispatch", "max_backlog"])
    """
    lowered = env_key.lower()
    for section in _SECTIONS:
        if lowered.startswith(f"{section}_"):
            return [section, lowered[len(section) + 1:]]
    return lowered.split("_")


def _coerce(value: str) -> Any:
    lowered = value.lower()
    if value.isdigit():
        return int(value)
    if value.replace(".", "", 1).isdigit():
        return float(value)
    if lowered in ("true", "yes"):
        return True
    if lowered in ("false", "no"):
        return False
    return value


def load_from_env(prefix: str = "SLUICE") -> Dict[str, Any]:
    """Load configuration from environment variables with given prefix.

    Args:
        prefix: Prefix for environment variables to consider

    Returns:
        Dictionary containing configuration from environment
    """
    result: Dict[str, Any] = {}
    prefix_upper = prefix.upper()

    for key, value in os.environ.items():
        if not key.startswith(f"{prefix_upper}_"):
            continue
        env_key = key[len(prefix_upper) + 1:]
        # Points at the config file itself.
        if env_key == "CONFIG":
            continue

        path = _normalize_env_key(env_key)

        current = result
        for part in path[:-1]:
            current = current.setdefault(part, {})
        current[path[-1]] = _coerce(value)

    return result


def load_config(
    file_path: Optional[str] = None,
    env_prefix: str = "SLUICE"
) -> SluiceConfig:
    """Load SluiceConfig from file and environment.

    Args:
        file_path: Path to config file (defaults to SLUICE_CONFIG from env or "sluice.yaml")
        env_prefix: Prefix for environment variables

    Returns:
        Validated SluiceConfig instance

    Raises:
        ConfigError: On loading or validation failure
    """
    path = file_path or os.environ.get(f"{env_prefix}_CONFIG", "sluice.yaml")
    source: Optional[str] = None
    try:
        config_data: Dict[str, Any] = {}

        if os.path.exists(path):
            source = path
            config_data = merge_dicts(config_data, load_yaml_file(path))

        # Environment overrides file
        env_config = load_from_env(env_prefix)
        if env_config:
            config_data = merge_dicts(config_data, env_config)

        config_data = resolve_env_vars(config_data)

        return SluiceConfig.model_validate(config_data)

    except Exception as e:
        if isinstance(e, ConfigError):
            raise
        raise ConfigError(f"Failed to load configuration: {e}", path=source) from e
