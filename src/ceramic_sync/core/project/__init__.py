"""
The project document and its local store.

Example:
    >>> from ceramic_sync.core.project import ProjectStore
    >>> store = ProjectStore.load(Path("game/project.ceramic"), machine_id)
    >>> store.project.git_repository_url
    'https://github.com/me/game.git'
"""

from ceramic_sync.core.project.models import (
    Project,
    SyncStatus,
    is_valid_repository_url,
)
from ceramic_sync.core.project.store import ProjectSnapshot, ProjectStore, parse_document

__all__ = [
    "Project",
    "ProjectSnapshot",
    "ProjectStore",
    "SyncStatus",
    "is_valid_repository_url",
    "parse_document",
]
