"""
User-scoped record.

Data that belongs to the person at the keyboard rather than to the shared
project document: the path of the project they have open and the personal
access token used to authenticate against the remote. The token is never
written into ``project.ceramic`` and never appears in logs or reprs.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from pydantic import BaseModel, Field

from .loader import get_user_config_dir

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "CERAMIC_SYNC_GIT_TOKEN"


class UserRecord(BaseModel):
    """Persistent user record stored in ``~/.config/ceramic-sync/user.json``."""

    project_path: Path | None = Field(
        default=None,
        description="Absolute path of the last opened project file",
    )

    git_token: str | None = Field(
        default=None,
        repr=False,
        description="Personal access token for the remote repository",
    )

    @property
    def effective_token(self) -> str | None:
        """Token from the environment if exported, else the stored one."""
        return os.environ.get(TOKEN_ENV_VAR) or self.git_token or None


def get_user_record_path() -> Path:
    """Path to the user record file."""
    return get_user_config_dir() / "user.json"


def load_user_record(path: Path | None = None) -> UserRecord:
    """Load the user record, returning an empty one if missing or unreadable."""
    path = path or get_user_record_path()
    if not path.exists():
        return UserRecord()

    try:
        return UserRecord.model_validate_json(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, ValueError, OSError) as e:
        logger.warning("Failed to load user record from %s: %s", path, type(e).__name__)
        return UserRecord()


def save_user_record(record: UserRecord, path: Path | None = None) -> None:
    """Save the user record atomically, readable by the owner only."""
    path = path or get_user_record_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_path = path.with_suffix(".tmp")
    try:
        temp_path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
        os.chmod(temp_path, 0o600)
        temp_path.replace(path)
    except OSError:
        if temp_path.exists():
            temp_path.unlink()
        raise
