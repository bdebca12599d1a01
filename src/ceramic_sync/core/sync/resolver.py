"""
Conflict resolution.

Decides which side of a sync wins from two markers recorded at the last
successful sync: the device footprint and the remote commit timestamp.

Rules, first match wins:

1. The remote has no project file: push local (the remote is new).
2. The footprint differs from the recorded one, or this device never
   synced: pull remote. This device has never incorporated this remote
   state.
3. The remote commit is newer than the last sync: ask the user.
4. Otherwise: push local.

Rule 2 also applies on a device's very first sync, so fresh local edits
that were never pushed are replaced by the remote content.
"""

from __future__ import annotations

from enum import Enum

CONFLICT_CHOICES = ["Local", "Remote"]


class SyncDecision(str, Enum):
    """Which way a sync goes."""

    PUSH_LOCAL = "push_local"
    PULL_REMOTE = "pull_remote"
    ASK_USER = "ask_user"


class SyncDirection(str, Enum):
    """Caller preference for resolving a divergence."""

    AUTO = "auto"
    LOCAL_TO_REMOTE = "local_to_remote"
    REMOTE_TO_LOCAL = "remote_to_local"


def resolve(
    *,
    remote_has_project_file: bool,
    local_footprint: str | None,
    last_sync_footprint: str | None,
    remote_commit_timestamp: int,
    last_sync_timestamp: int | None,
    direction: SyncDirection = SyncDirection.AUTO,
) -> SyncDecision:
    """
    Decide between pushing, pulling and asking the user.

    Args:
        remote_has_project_file: Whether the clone contains a project file.
        local_footprint: Current footprint of the local project.
        last_sync_footprint: Footprint recorded at the last successful sync.
        remote_commit_timestamp: Timestamp of the remote's latest commit.
        last_sync_timestamp: Remote timestamp recorded at the last successful sync.
        direction: ``REMOTE_TO_LOCAL`` always pulls an existing remote project;
            ``LOCAL_TO_REMOTE`` pushes instead of asking on divergence.

    Example:
        >>> resolve(
        ...     remote_has_project_file=True,
        ...     local_footprint="F2",
        ...     last_sync_footprint="F2",
        ...     remote_commit_timestamp=1000,
        ...     last_sync_timestamp=1000,
        ... )
        <SyncDecision.PUSH_LOCAL: 'push_local'>
    """
    if not remote_has_project_file:
        return SyncDecision.PUSH_LOCAL

    if direction == SyncDirection.REMOTE_TO_LOCAL:
        return SyncDecision.PULL_REMOTE

    if local_footprint != last_sync_footprint or last_sync_timestamp is None:
        return SyncDecision.PULL_REMOTE

    if remote_commit_timestamp > last_sync_timestamp:
        if direction == SyncDirection.LOCAL_TO_REMOTE:
            return SyncDecision.PUSH_LOCAL
        return SyncDecision.ASK_USER

    return SyncDecision.PUSH_LOCAL


def decision_for_choice(index: int | None) -> SyncDecision | None:
    """
    Map the answer to the conflict prompt.

    None means the prompt was cancelled. An index outside the choices is
    treated the same way.
    """
    if index is None or not 0 <= index < len(CONFLICT_CHOICES):
        return None
    if CONFLICT_CHOICES[index] == "Local":
        return SyncDecision.PUSH_LOCAL
    return SyncDecision.PULL_REMOTE
