"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .models import SyncConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAME = ".ceramic-sync.json"

# Global cache to avoid reloading config multiple times per session
_config_cache: SyncConfig | None = None


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_dir() -> Path:
    """Directory holding the user-scoped ceramic-sync files."""
    return get_xdg_config_home() / "ceramic-sync"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/ceramic-sync/config.json (or XDG equivalent)
    """
    return get_user_config_dir() / "config.json"


def get_project_config_path(project_dir: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        project_dir: Directory containing the project file (defaults to cwd)

    Returns:
        Path to .ceramic-sync.json next to the project file
    """
    if project_dir is None:
        project_dir = Path.cwd()
    return project_dir / PROJECT_CONFIG_NAME


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"git": {"binary": "git"}}, {"git": {"timeout_seconds": 5}})
        {'git': {'binary': 'git', 'timeout_seconds': 5}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            return None
    except (json.JSONDecodeError, OSError) as e:
        # Config system should be resilient
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        CERAMIC_SYNC_GIT_BINARY - overrides git.binary
        CERAMIC_SYNC_GIT_TIMEOUT - overrides git.timeout_seconds
        CERAMIC_SYNC_TEMP_ROOT - overrides temp_root
        CERAMIC_SYNC_MACHINE_ID_PATH - overrides machine_id_path

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = config_dict.copy()

    if binary := os.environ.get("CERAMIC_SYNC_GIT_BINARY"):
        result["git"] = {**result.get("git", {}), "binary": binary}

    if timeout_str := os.environ.get("CERAMIC_SYNC_GIT_TIMEOUT"):
        try:
            timeout = float(timeout_str)
            if timeout <= 0:
                logger.warning(
                    "CERAMIC_SYNC_GIT_TIMEOUT must be > 0, got %s, ignoring", timeout_str
                )
            else:
                result["git"] = {**result.get("git", {}), "timeout_seconds": timeout}
        except ValueError:
            logger.warning("Invalid CERAMIC_SYNC_GIT_TIMEOUT value '%s', ignoring", timeout_str)

    if temp_root := os.environ.get("CERAMIC_SYNC_TEMP_ROOT"):
        result["temp_root"] = temp_root

    if machine_id_path := os.environ.get("CERAMIC_SYNC_MACHINE_ID_PATH"):
        result["machine_id_path"] = machine_id_path

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "git": {"binary": "git", "timeout_seconds": 120.0, "clone_depth": 1},
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> SyncConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (CERAMIC_SYNC_*)
        2. Project config (.ceramic-sync.json)
        3. User config (~/.config/ceramic-sync/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Directory containing the project file (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated SyncConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_json_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if project_config := load_json_file(get_project_config_path(project_dir)):
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = SyncConfig(**merged)
    logger.debug("Loaded config: %s", config.model_dump())

    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
