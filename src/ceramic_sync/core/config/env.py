"""Environment loading helpers.

ceramic-sync reads its overrides (and optionally the git token) from
``CERAMIC_SYNC_*`` variables. Besides the shell, they may be set in:

- ``.env`` / ``.env.local`` next to the project file
- ``~/.config/ceramic-sync/.env`` for the user

Project files win over the user file. Neither overrides a variable that
was already exported in the shell.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable

from dotenv import dotenv_values

from .loader import get_user_config_dir

logger = logging.getLogger(__name__)

PROJECT_ENV_FILES = (".env", ".env.local")


def _env_file_values(path: Path) -> dict[str, str]:
    """Variables defined in one env file; entries without a value are skipped."""
    if not path.is_file():
        return {}
    return {str(k): str(v) for k, v in dotenv_values(path).items() if k and v is not None}


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> set[str]:
    """Export variables from the user and project env files.

    Args:
        project_dir: Directory holding the project env files (defaults to cwd)
        user_env_paths: Override the user env files
        project_env_paths: Override the project env files

    Returns:
        Names of the variables this call exported.
    """
    base = project_dir or Path.cwd()
    if user_env_paths is None:
        user_env_paths = [get_user_config_dir() / ".env"]
    if project_env_paths is None:
        project_env_paths = [base / name for name in PROJECT_ENV_FILES]

    # Snapshot of what the shell exported; those are never replaced
    shell_keys = set(os.environ)
    exported: set[str] = set()

    for layer in (user_env_paths, project_env_paths):
        for path in layer:
            for key, value in _env_file_values(Path(path)).items():
                if key in shell_keys:
                    continue
                os.environ[key] = value
                exported.add(key)

    if exported:
        logger.debug("Loaded %d variables from env files", len(exported))
    return exported
