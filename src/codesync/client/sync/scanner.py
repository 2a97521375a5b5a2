"""Workspace enumeration.

This module provides:
- enumerate_workspace: Walks a workspace root and collects syncable files
- is_workspace_empty: Heuristic used to detect a fresh device
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import TYPE_CHECKING

from codesync.client.sync.ignore import FileClassifier, is_excluded_dir_name
from codesync.client.sync.types import FileRecord

if TYPE_CHECKING:
    import threading

logger = logging.getLogger(__name__)


def enumerate_workspace(
    root: Path,
    classifier: FileClassifier | None = None,
    cancel: threading.Event | None = None,
) -> list[FileRecord]:
    """Collect every syncable file under a workspace root.

    The walk is depth-first and eager so callers know the total up front.
    Unreadable directories are skipped; the rest of the tree is still
    returned. Symlinked files are kept, symlinked directories are not
    followed. Ordering is not stable across runs.

    Args:
        root: Workspace root directory.
        classifier: Classifier to apply (defaults to the fixed lists).
        cancel: Optional event; when set the walk stops early.

    Returns:
        List of FileRecord, relative to root.
    """
    root = Path(root)
    classifier = classifier or FileClassifier()
    records: list[FileRecord] = []

    def on_error(error: OSError) -> None:
        logger.debug(f"Skipping unreadable directory: {error.filename} ({error})")

    for dir_str, dirs, files in os.walk(root, onerror=on_error):
        if cancel is not None and cancel.is_set():
            logger.info("Workspace enumeration cancelled")
            break

        current = Path(dir_str)

        # Prune excluded directories in place so os.walk never enters them
        dirs[:] = [
            d for d in dirs
            if not is_excluded_dir_name(d) and not (current / d).is_symlink()
        ]

        for filename in files:
            file_path = current / filename
            if file_path.is_symlink() and not file_path.is_file():
                continue
            record = FileRecord.from_path(file_path, root)
            if classifier.is_syncable(record.relative_path):
                records.append(record)

    logger.debug(f"Enumerated {len(records)} syncable files under {root}")
    return records


def is_workspace_empty(root: Path) -> bool:
    """Check whether a workspace looks like a fresh, empty folder.

    Dot-prefixed and deny-listed names are not counted, so a folder
    holding only .git or .vscode is empty. A README alone is not.
    An unreadable root counts as empty.
    """
    try:
        names = os.listdir(root)
    except OSError as e:
        logger.debug(f"Cannot list workspace root {root}: {e}")
        return True
    return not [name for name in names if not is_excluded_dir_name(name)]
