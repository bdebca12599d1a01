"""Whole-directory mirroring of the synced project directories."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from ceramic_sync.core.errors import AssetCopyFailureError

logger = logging.getLogger(__name__)


def mirror(src: Path, dst: Path) -> None:
    """
    Make ``dst`` an exact copy of ``src``.

    ``dst`` is removed and recreated, then filled with the contents of
    ``src`` if it exists. A missing ``src`` leaves ``dst`` empty. Running it
    twice with an unchanged ``src`` yields the same ``dst``.

    Raises:
        AssetCopyFailureError: On any filesystem error.
    """
    if src.resolve() == dst.resolve():
        return

    try:
        if dst.exists() or dst.is_symlink():
            if dst.is_dir() and not dst.is_symlink():
                shutil.rmtree(dst)
            else:
                dst.unlink()
        dst.mkdir()
        if src.exists():
            shutil.copytree(src, dst, dirs_exist_ok=True)
        else:
            logger.debug("%s does not exist, %s left empty", src, dst)
    except OSError as e:
        raise AssetCopyFailureError(f"Failed to copy files from {src} to {dst}: {e}") from e

    logger.info("Mirrored %s to %s", src, dst)
