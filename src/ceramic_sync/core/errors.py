"""
Exceptions raised by the sync pipeline.

Every failure of a sync attempt is one of a fixed set of kinds. Each kind
has its own exception class so callers can catch precisely, and every
instance carries its :class:`SyncFailureKind` so the coordinator and the
CLI can report it uniformly.

Exception Hierarchy:
    SyncError (base)
    ├── MissingGitBinaryError
    ├── MissingTokenError
    ├── InvalidRepoUrlError
    ├── ProjectNotSavedLocallyError
    ├── CloneFailureError
    ├── TimestampFetchFailureError
    ├── AssetCopyFailureError
    ├── GitAddFailureError
    ├── GitCommitFailureError
    ├── GitPushFailureError
    ├── LocalWriteFailureError
    └── RemoteParseFailureError

Messages are expected to be redacted of credentials before they reach
these classes; the git transport is the only place that sees the token.
"""

from __future__ import annotations

from enum import Enum


class SyncFailureKind(str, Enum):
    """Why a sync attempt failed."""

    MISSING_GIT_BINARY = "missing_git_binary"
    MISSING_TOKEN = "missing_token"
    INVALID_REPO_URL = "invalid_repo_url"
    PROJECT_NOT_SAVED_LOCALLY = "project_not_saved_locally"
    CLONE_FAILURE = "clone_failure"
    TIMESTAMP_FETCH_FAILURE = "timestamp_fetch_failure"
    ASSET_COPY_FAILURE = "asset_copy_failure"
    GIT_ADD_FAILURE = "git_add_failure"
    GIT_COMMIT_FAILURE = "git_commit_failure"
    GIT_PUSH_FAILURE = "git_push_failure"
    LOCAL_WRITE_FAILURE = "local_write_failure"
    REMOTE_PARSE_FAILURE = "remote_parse_failure"


class SyncError(Exception):
    """
    Base exception for all sync failures.

    Attributes:
        kind: Failure kind
        message: Human-readable, redacted message
        stderr: Redacted stderr of the failing git command, if any
    """

    kind: SyncFailureKind

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.stderr = stderr

    def __str__(self) -> str:
        return self.message


class MissingGitBinaryError(SyncError):
    kind = SyncFailureKind.MISSING_GIT_BINARY


class MissingTokenError(SyncError):
    kind = SyncFailureKind.MISSING_TOKEN


class InvalidRepoUrlError(SyncError):
    kind = SyncFailureKind.INVALID_REPO_URL


class ProjectNotSavedLocallyError(SyncError):
    kind = SyncFailureKind.PROJECT_NOT_SAVED_LOCALLY


class CloneFailureError(SyncError):
    kind = SyncFailureKind.CLONE_FAILURE


class TimestampFetchFailureError(SyncError):
    kind = SyncFailureKind.TIMESTAMP_FETCH_FAILURE


class AssetCopyFailureError(SyncError):
    kind = SyncFailureKind.ASSET_COPY_FAILURE


class GitAddFailureError(SyncError):
    kind = SyncFailureKind.GIT_ADD_FAILURE


class GitCommitFailureError(SyncError):
    kind = SyncFailureKind.GIT_COMMIT_FAILURE


class GitPushFailureError(SyncError):
    kind = SyncFailureKind.GIT_PUSH_FAILURE


class LocalWriteFailureError(SyncError):
    kind = SyncFailureKind.LOCAL_WRITE_FAILURE


class RemoteParseFailureError(SyncError):
    kind = SyncFailureKind.REMOTE_PARSE_FAILURE
