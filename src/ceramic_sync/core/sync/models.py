"""
Data models for the sync coordinator.

Defines the pipeline phases and the result of one sync attempt.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from ceramic_sync.core.errors import SyncFailureKind
from ceramic_sync.core.sync.resolver import SyncDecision


class SyncPhase(str, Enum):
    """Where the coordinator currently is in its pipeline."""

    IDLE = "idle"
    GUARDING = "guarding"
    CLONING = "cloning"
    INSPECTING = "inspecting"
    PROMPTING = "prompting"
    PUSHING = "pushing"
    PULLING = "pulling"
    FINALIZING = "finalizing"
    FAILED = "failed"


class SyncOutcome(str, Enum):
    """How a sync attempt ended."""

    SUCCESS = "success"
    FAILURE = "failure"
    ABORTED = "aborted"
    SKIPPED = "skipped"


class SyncResult(BaseModel):
    """
    Result of one call to ``SyncCoordinator.sync()``.

    ``message`` is safe to display: it never contains the access token.
    """

    outcome: SyncOutcome = Field(description="How the attempt ended")

    decision: SyncDecision | None = Field(
        default=None,
        description="Which way the sync went, once decided",
    )

    message: str = Field(
        default="",
        description="Human-readable result message",
    )

    failure_kind: SyncFailureKind | None = Field(default=None)

    remote_commit_timestamp: int | None = Field(
        default=None,
        description="Remote commit timestamp recorded by a successful sync",
    )

    commit_hash: str | None = Field(
        default=None,
        description="Remote commit hash recorded by a successful sync",
    )

    started_at: datetime | None = Field(default=None)
    completed_at: datetime | None = Field(default=None)

    @property
    def success(self) -> bool:
        return self.outcome == SyncOutcome.SUCCESS

    @property
    def duration_seconds(self) -> float | None:
        """Calculate operation duration in seconds."""
        if self.started_at and self.completed_at:
            delta = self.completed_at - self.started_at
            return delta.total_seconds()
        return None

    def summary(self) -> str:
        """Generate a human-readable summary of the result."""
        if self.outcome == SyncOutcome.FAILURE:
            return f"sync failed: {self.message}"
        if self.outcome == SyncOutcome.ABORTED:
            return "sync cancelled"
        if self.outcome == SyncOutcome.SKIPPED:
            return "sync skipped: another sync is in progress"

        parts = ["sync succeeded"]
        if self.decision == SyncDecision.PUSH_LOCAL:
            parts.append("local changes pushed")
        elif self.decision == SyncDecision.PULL_REMOTE:
            parts.append("remote changes applied")
        if self.commit_hash:
            parts.append(f"commit {self.commit_hash[:8]}")
        return ", ".join(parts)
