"""git-diff-apply configuration management.

Handles global (~/.config/git-diff-apply/) and per-project
(.git-diff-apply.yaml in the working copy) configuration.
"""

import copy
from pathlib import Path
from typing import Any, Optional

import yaml

PROJECT_CONFIG_FILENAME = ".git-diff-apply.yaml"

# Default configuration values
DEFAULT_CONFIG: dict[str, Any] = {
    "remote_url": None,
    "ignore_conflicts": True,
    "ignored_files": [],
    "log_dir": None,
}


class ConfigError(ValueError):
    """A configuration file is malformed."""


def get_global_config_dir() -> Path:
    """Get the global configuration directory path."""
    return Path.home() / ".config" / "git-diff-apply"


def get_project_config_file(working_copy: Path) -> Path:
    """Get the per-project configuration file path."""
    return Path(working_copy) / PROJECT_CONFIG_FILENAME


def _read_config_file(config_path: Path) -> dict[str, Any]:
    """Read a YAML config file.

    Raises:
        ConfigError: If the file is not valid YAML, not a mapping, or holds
            a value of the wrong type.
    """
    try:
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Expected a mapping in {config_path}, got {type(data).__name__}")

    _validate(data, config_path)
    return {key: value for key, value in data.items() if value is not None}


def _validate(data: dict[str, Any], config_path: Path) -> None:
    """Check value types; None leaves the lower layer's value in effect."""
    ignored = data.get("ignored_files")
    if ignored is not None:
        if not isinstance(ignored, list):
            raise ConfigError(f"ignored_files must be a list in {config_path}")
        if not all(isinstance(item, str) for item in ignored):
            raise ConfigError(f"ignored_files entries must be strings in {config_path}")

    ignore_conflicts = data.get("ignore_conflicts")
    if ignore_conflicts is not None and not isinstance(ignore_conflicts, bool):
        raise ConfigError(f"ignore_conflicts must be true or false in {config_path}")

    for key in ("remote_url", "log_dir"):
        value = data.get(key)
        if value is not None and not isinstance(value, str):
            raise ConfigError(f"{key} must be a string in {config_path}")


def load_config(working_copy: Optional[Path] = None) -> dict[str, Any]:
    """Load merged configuration (global + project).

    Priority (highest first):
    1. Project config (<working copy>/.git-diff-apply.yaml)
    2. Global config (~/.config/git-diff-apply/config.yaml)
    3. Default values

    Args:
        working_copy: Working-copy root (default: no project config)

    Returns:
        Merged configuration dictionary
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    global_config_file = get_global_config_dir() / "config.yaml"
    if global_config_file.exists():
        config = _deep_merge(config, _read_config_file(global_config_file))

    if working_copy is not None:
        project_config_file = get_project_config_file(working_copy)
        if project_config_file.exists():
            config = _deep_merge(config, _read_config_file(project_config_file))

    return config


def _deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dictionaries.

    Args:
        base: Base dictionary
        override: Dictionary with overriding values

    Returns:
        Merged dictionary
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def write_default_config(config_path: Path) -> None:
    """Write default configuration to file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        yaml.dump(DEFAULT_CONFIG, f, default_flow_style=False, sort_keys=False)
