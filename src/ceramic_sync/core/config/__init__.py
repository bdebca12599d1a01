"""
Configuration models and loading.

This module provides Pydantic models for ceramic-sync configuration
with multi-layer merging: defaults < user < project < env vars, plus the
user-scoped record holding the remote access token.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_project_config_path,
    get_user_config_dir,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import GitConfig, LayoutConfig, SyncConfig
from .user import (
    TOKEN_ENV_VAR,
    UserRecord,
    get_user_record_path,
    load_user_record,
    save_user_record,
)

__all__ = [
    # Models
    "GitConfig",
    "LayoutConfig",
    "SyncConfig",
    "UserRecord",
    # Loader functions
    "clear_cache",
    "get_project_config_path",
    "get_user_config_dir",
    "get_user_config_path",
    "get_user_record_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
    "load_user_record",
    "save_user_record",
    "TOKEN_ENV_VAR",
]
