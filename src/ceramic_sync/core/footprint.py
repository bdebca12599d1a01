"""
Device footprint.

A footprint identifies one pairing of a local project path and a machine.
It is recorded at every successful sync and compared on the next one to
tell whether this device has already incorporated the remote state. It is
an opaque marker, not a security boundary: collisions are not defended
against.
"""

from __future__ import annotations

import hashlib
import logging
import uuid
from pathlib import Path

logger = logging.getLogger(__name__)

_SEPARATOR = " ~! "


def compute_footprint(local_path: str, machine_id: str) -> str:
    """
    Return the footprint of a project path on a given machine.

    Pure and deterministic: the same inputs give the same MD5 hex digest
    in every process.

    Example:
        >>> len(compute_footprint("/work/game/project.ceramic", "machine-1"))
        32
    """
    return hashlib.md5((local_path + _SEPARATOR + machine_id).encode("utf-8")).hexdigest()


def load_machine_id(path: Path) -> str:
    """
    Read this machine's identifier, creating it on first use.

    Args:
        path: Identifier file (``~/.ceramic/.machine`` by default).

    Returns:
        The identifier string.
    """
    if path.exists():
        machine_id = path.read_text(encoding="utf-8").strip()
        if machine_id:
            return machine_id

    machine_id = str(uuid.uuid4())
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(machine_id, encoding="utf-8")
    logger.info("Created machine identifier at %s", path)
    return machine_id
