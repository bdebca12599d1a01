"""
ceramic-sync - Git remote synchronization for Ceramic editor projects

Keeps a locally edited project and its assets consistent with a single
remote git repository.
"""

__version__ = "0.4.0"

# Re-export core models for convenience
from ceramic_sync.core.project import Project, ProjectStore, SyncStatus
from ceramic_sync.core.sync import SyncCoordinator, SyncResult

__all__ = ["Project", "ProjectStore", "SyncCoordinator", "SyncResult", "SyncStatus", "__version__"]
