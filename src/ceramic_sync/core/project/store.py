"""
Project document store.

Loads and saves ``project.ceramic`` files and applies a remote copy of the
document onto the local one. The file is UTF-8 JSON of the form::

    {
      "project": { ...flat project fields, including "footprint"... },
      "entries": [ { "id": "...", ... }, ... ]
    }

``footprint`` is always recomputed from the local path and the machine id,
so it is stripped whenever a document is read.
"""

from __future__ import annotations

import copy
import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from ceramic_sync.core.errors import (
    LocalWriteFailureError,
    ProjectNotSavedLocallyError,
)
from ceramic_sync.core.footprint import compute_footprint
from ceramic_sync.core.project.models import LOCAL_PATH_FIELDS, LOCAL_SYNC_FIELDS, Project

logger = logging.getLogger(__name__)


def parse_document(text: str) -> tuple[dict[str, Any], list[dict[str, Any]]]:
    """
    Parse the text of a project file.

    Returns:
        The serialized project fields and the list of serialized entries.

    Raises:
        ValueError: If the text is not a well-formed project document.
    """
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError("project document must be a JSON object")

    project = data.get("project")
    if not isinstance(project, dict):
        raise ValueError("project document has no 'project' object")

    entries = data.get("entries", [])
    if not isinstance(entries, list):
        raise ValueError("'entries' must be a list")
    for entry in entries:
        if not isinstance(entry, dict) or "id" not in entry:
            raise ValueError("every entry must be an object with an 'id'")

    return project, entries


@dataclass
class ProjectSnapshot:
    """Deep copy of a store's document, used to roll back a failed pull."""

    project: Project
    entries: dict[str, dict[str, Any]]


class ProjectStore:
    """
    In-memory project document bound to a local file.

    Example:
        >>> store = ProjectStore(Path("/work/game/project.ceramic"), machine_id="m-1")
        >>> store.footprint == compute_footprint("/work/game/project.ceramic", "m-1")
        True
    """

    def __init__(
        self,
        path: Path | None,
        machine_id: str,
        project: Project | None = None,
        entries: list[dict[str, Any]] | None = None,
    ) -> None:
        self.path = path.resolve() if path is not None else None
        self.machine_id = machine_id
        self.project = project or Project()
        self.entries: dict[str, dict[str, Any]] = {}
        for entry in entries or []:
            self.entries[str(entry["id"])] = entry

    @classmethod
    def load(cls, path: Path, machine_id: str) -> ProjectStore:
        """
        Open a project file.

        Raises:
            OSError: If the file can't be read.
            ValueError: If the file is not a valid project document.
        """
        serialized, entries = parse_document(path.read_text(encoding="utf-8"))

        serialized = dict(serialized)
        serialized.pop("footprint", None)
        # Older files may lack the sync markers entirely
        for key in ("lastGitSyncTimestamp", "lastGitSyncProjectFootprint"):
            if not serialized.get(key):
                serialized[key] = None

        try:
            project = Project.model_validate(serialized)
        except ValidationError as e:
            raise ValueError(f"invalid project fields: {e}") from e

        logger.info("Opened project %s (%d entries)", path, len(entries))
        return cls(path, machine_id, project=project, entries=entries)

    @property
    def footprint(self) -> str | None:
        """Footprint of this project on this machine; None until saved to disk."""
        if self.path is None:
            return None
        return compute_footprint(str(self.path), self.machine_id)

    @property
    def project_dir(self) -> Path | None:
        return self.path.parent if self.path is not None else None

    def _absolute(self, path: str | None) -> Path | None:
        if not path:
            return None
        candidate = Path(path).expanduser()
        if candidate.is_absolute():
            return candidate
        if self.project_dir is None:
            return None
        return (self.project_dir / candidate).resolve()

    @property
    def absolute_assets_path(self) -> Path | None:
        """Assets directory resolved against the project file's directory."""
        return self._absolute(self.project.assets_path)

    @property
    def absolute_raw_files_path(self) -> Path | None:
        return self._absolute(self.project.raw_files_path)

    @property
    def absolute_editor_path(self) -> Path | None:
        return self._absolute(self.project.editor_path)

    def sync_directories(self, names: Iterable[str]) -> list[tuple[str, Path]]:
        """
        Local directories to mirror, keyed by their name in the remote.

        Only ``names`` are considered, in the fixed ``assets``, ``files``,
        ``editor`` order; directories without a configured path are skipped.
        """
        wanted = set(names)
        local_paths = {
            "assets": self.absolute_assets_path,
            "files": self.absolute_raw_files_path,
            "editor": self.absolute_editor_path,
        }
        return [
            (name, path)
            for name, path in local_paths.items()
            if name in wanted and path is not None
        ]

    def to_document(self, *, for_remote: bool = False) -> dict[str, Any]:
        """
        Build the JSON document.

        Args:
            for_remote: Drop the fields describing this device's sync state.
        """
        serialized = self.project.to_serialized()
        serialized["footprint"] = self.footprint
        if for_remote:
            for key in LOCAL_SYNC_FIELDS:
                serialized.pop(key, None)
        return {"project": serialized, "entries": list(self.entries.values())}

    def serialize(self, *, for_remote: bool = False) -> str:
        return json.dumps(self.to_document(for_remote=for_remote), indent=2)

    def save(self) -> None:
        """
        Write the document to its local file atomically.

        Raises:
            ProjectNotSavedLocallyError: If the store has no local path.
            LocalWriteFailureError: If the file can't be written.
        """
        if self.path is None:
            raise ProjectNotSavedLocallyError(
                "Cannot synchronize the project before it is saved to disk."
            )

        self.project.save_timestamp = int(time.time())
        temp_path = self.path.with_suffix(".tmp")
        try:
            temp_path.write_text(self.serialize(), encoding="utf-8")
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise LocalWriteFailureError(f"Failed to save project to {self.path}: {e}") from e

        logger.debug("Saved project %s", self.path)

    def apply_remote(self, serialized: dict[str, Any], entries: list[dict[str, Any]]) -> None:
        """
        Merge a remote copy of the document into this one.

        The remote footprint is dropped (ours is recomputed), as are the
        remote ``assetsPath``, ``rawFilesPath`` and ``editorPath`` when the
        same path is already set locally. This device's sync markers are
        never taken from the remote. Entries are upserted by id.

        Raises:
            ValueError: If the remote fields don't validate.
        """
        incoming = dict(serialized)
        incoming.pop("footprint", None)
        local = self.project.to_serialized()
        for key in LOCAL_PATH_FIELDS:
            if local.get(key):
                incoming.pop(key, None)
        for key in LOCAL_SYNC_FIELDS:
            incoming.pop(key, None)

        merged = {**local, **incoming}
        try:
            project = Project.model_validate(merged)
        except ValidationError as e:
            raise ValueError(f"invalid remote project fields: {e}") from e
        project.sync_in_progress = self.project.sync_in_progress

        for entry in entries:
            self.entries[str(entry["id"])] = entry
        self.project = project

        logger.info("Applied remote project (%d entries)", len(entries))

    def snapshot(self) -> ProjectSnapshot:
        return ProjectSnapshot(
            project=self.project.model_copy(deep=True),
            entries=copy.deepcopy(self.entries),
        )

    def restore(self, snapshot: ProjectSnapshot) -> None:
        in_progress = self.project.sync_in_progress
        self.project = snapshot.project
        self.project.sync_in_progress = in_progress
        self.entries = snapshot.entries
