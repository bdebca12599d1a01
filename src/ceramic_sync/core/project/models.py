"""
Data models for the project document.

The project document is the root object of a ``project.ceramic`` file. Only
the fields that the sync engine reads or writes are declared here; every
other editor field is preserved untouched as a pydantic extra.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

HTTPS_PREFIX = "https://"

# Device-local directory paths; a remote value never replaces one set locally
LOCAL_PATH_FIELDS = ("assetsPath", "rawFilesPath", "editorPath")

# Fields describing this device's view of the remote; never sent to the remote
LOCAL_SYNC_FIELDS = frozenset(
    {
        "lastGitSyncTimestamp",
        "lastGitSyncProjectFootprint",
        "lastGitSyncCommitHash",
        "lastSyncStatus",
    }
)


class SyncStatus(str, Enum):
    """Outcome of the last sync attempt."""

    NONE = "none"
    SUCCESS = "success"
    FAILURE = "failure"


def is_valid_repository_url(url: str | None) -> bool:
    """Only HTTPS remotes can carry the access token."""
    return bool(url) and url.startswith(HTTPS_PREFIX)


class Project(BaseModel):
    """
    Root object of the project document.

    Serialized with camelCase keys (``gitRepositoryUrl``,
    ``lastGitSyncTimestamp``...). ``sync_in_progress`` is runtime state and is
    never serialized.

    Example:
        >>> project = Project(name="demo", git_repository_url="https://example.com/x.git")
        >>> project.model_dump(by_alias=True)["gitRepositoryUrl"]
        'https://example.com/x.git'
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )

    id: str = Field(default="project")
    name: str | None = Field(default=None)

    assets_path: str | None = Field(
        default=None,
        description="Assets directory, relative to the project file's directory",
    )

    raw_files_path: str | None = Field(
        default=None,
        description="Raw files directory, relative to the project file's directory",
    )

    editor_path: str | None = Field(
        default=None,
        description="Editor scripts directory, relative to the project file's directory",
    )

    save_timestamp: int | None = Field(
        default=None,
        description="Unix timestamp of the last local save",
    )

    git_repository_url: str | None = Field(
        default=None,
        description="HTTPS URL of the remote repository",
    )

    last_git_sync_timestamp: int | None = Field(
        default=None,
        description="Remote commit timestamp as of the last successful sync",
    )

    last_git_sync_project_footprint: str | None = Field(
        default=None,
        description="Footprint recorded at the last successful sync",
    )

    last_git_sync_commit_hash: str | None = Field(
        default=None,
        description="Remote commit hash as of the last successful sync",
    )

    last_sync_status: SyncStatus = Field(default=SyncStatus.NONE)

    sync_in_progress: bool = Field(default=False, exclude=True)

    def mark_synced(self, timestamp: int, footprint: str | None, commit_hash: str | None) -> None:
        """Record a successful sync. The three markers always move together."""
        self.last_git_sync_timestamp = timestamp
        self.last_git_sync_project_footprint = footprint
        self.last_git_sync_commit_hash = commit_hash

    def sync_markers(self) -> tuple[int | None, str | None, str | None]:
        return (
            self.last_git_sync_timestamp,
            self.last_git_sync_project_footprint,
            self.last_git_sync_commit_hash,
        )

    def restore_sync_markers(self, markers: tuple[int | None, str | None, str | None]) -> None:
        (
            self.last_git_sync_timestamp,
            self.last_git_sync_project_footprint,
            self.last_git_sync_commit_hash,
        ) = markers

    def to_serialized(self) -> dict[str, Any]:
        """Flat JSON-compatible dict with camelCase keys and extras preserved."""
        return self.model_dump(by_alias=True, mode="json")
