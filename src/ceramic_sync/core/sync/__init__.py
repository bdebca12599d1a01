"""
Remote synchronization of a project with a git repository.

A sync shallow-clones the remote into a temporary directory, compares the
remote's latest commit timestamp and this device's footprint with the
markers recorded at the last successful sync, then either pushes the local
project or applies the remote one. Divergence is resolved by asking the
user.

Example:
    >>> from ceramic_sync.core.sync import SyncCoordinator, PromptBroker
    >>> coordinator = SyncCoordinator(store, PromptBroker(), token=token)
    >>> result = await coordinator.sync()
    >>> result.outcome
    <SyncOutcome.SUCCESS: 'success'>
"""

from ceramic_sync.core.sync.assets import mirror
from ceramic_sync.core.sync.coordinator import SyncCoordinator
from ceramic_sync.core.sync.git import (
    GitResult,
    GitTransport,
    parse_commit_timestamp,
    tokenize_url,
)
from ceramic_sync.core.sync.models import SyncOutcome, SyncPhase, SyncResult
from ceramic_sync.core.sync.prompts import (
    ConsolePromptService,
    PromptBroker,
    PromptKind,
    PromptRequest,
    PromptService,
)
from ceramic_sync.core.sync.resolver import (
    CONFLICT_CHOICES,
    SyncDecision,
    SyncDirection,
    resolve,
)

__all__ = [
    "CONFLICT_CHOICES",
    "ConsolePromptService",
    "GitResult",
    "GitTransport",
    "PromptBroker",
    "PromptKind",
    "PromptRequest",
    "PromptService",
    "SyncCoordinator",
    "SyncDecision",
    "SyncDirection",
    "SyncOutcome",
    "SyncPhase",
    "SyncResult",
    "mirror",
    "parse_commit_timestamp",
    "resolve",
    "tokenize_url",
]
