"""
Configuration data models for ceramic-sync.

These models define the structure of ``.ceramic-sync.json`` and
``~/.config/ceramic-sync/config.json`` files, with validation and type
safety via Pydantic.
"""

import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GITIGNORE_ENTRIES = [".DS_Store", "__MACOSX", "thumbs.db"]

# Remote directory names, in the order they are mirrored
SYNC_DIR_NAMES = ("assets", "files", "editor")
DEFAULT_SYNC_DIR_NAMES = ["assets", "files"]


class GitConfig(BaseModel):
    """
    How the git binary is invoked.

    Every remote operation shells out to git; these settings control
    which binary is used and how long a single command may run.
    """
    binary: str = Field(
        default="git",
        min_length=1,
        description="Git executable name or absolute path"
    )
    timeout_seconds: Optional[float] = Field(
        default=120.0,
        gt=0,
        description="Kill a git command running longer than this (None disables)"
    )
    clone_depth: int = Field(
        default=1,
        ge=1,
        description="History depth fetched when cloning the remote"
    )


class LayoutConfig(BaseModel):
    """
    Layout of the remote repository.

    The remote holds the project file at its root, one directory per
    synced project directory next to it and a fixed ``.gitignore``.
    Known directories are ``assets`` (assetsPath), ``files`` (rawFilesPath)
    and ``editor`` (editorPath).
    """
    project_file_name: str = Field(
        default="project.ceramic",
        description="Name of the project document inside the remote repository"
    )
    sync_dir_names: list[str] = Field(
        default_factory=lambda: list(DEFAULT_SYNC_DIR_NAMES),
        description="Project directories mirrored to and from the remote repository"
    )
    gitignore_entries: list[str] = Field(
        default_factory=lambda: list(DEFAULT_GITIGNORE_ENTRIES),
        description="Entries written to .gitignore when the remote has none"
    )

    @field_validator("sync_dir_names")
    @classmethod
    def known_dir_names(cls, v: list[str]) -> list[str]:
        unknown = [name for name in v if name not in SYNC_DIR_NAMES]
        if unknown:
            raise ValueError(f"unknown sync directories {unknown}, expected {list(SYNC_DIR_NAMES)}")
        return v


class SyncConfig(BaseModel):
    """
    Top-level ceramic-sync configuration.

    Loaded from user and project config files and environment variables
    by :func:`ceramic_sync.core.config.load_config`.
    """
    model_config = ConfigDict(extra="ignore")

    git: GitConfig = Field(default_factory=GitConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)

    temp_root: Optional[Path] = Field(
        default=None,
        description="Parent directory of the per-sync clones (defaults to the system temp dir)"
    )
    machine_id_path: Path = Field(
        default_factory=lambda: Path.home() / ".ceramic" / ".machine",
        description="File holding this machine's identifier"
    )

    @field_validator("temp_root", "machine_id_path", mode="before")
    @classmethod
    def expand_user(cls, v: object) -> object:
        if isinstance(v, str):
            return Path(v).expanduser()
        return v

    @property
    def resolved_temp_root(self) -> Path:
        """Directory under which each sync attempt creates its clone."""
        if self.temp_root is not None:
            return self.temp_root
        return Path(tempfile.gettempdir()) / "ceramic-sync"
