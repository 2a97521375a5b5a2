"""Full workspace upload.

This module provides:
- FullSync: Uploads every syncable file of a workspace in one batch
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from codesync.client.sync.ignore import load_classifier
from codesync.client.sync.scanner import enumerate_workspace
from codesync.client.sync.types import (
    FileRecord,
    ProgressCallback,
    SyncSummary,
    TransferError,
)

if TYPE_CHECKING:
    import threading

    from codesync.client.api import StoreClient
    from codesync.core.types import Identity

logger = logging.getLogger(__name__)


class FullSync:
    """Pushes an entire workspace to the store.

    Files are uploaded sequentially. A failing file is logged and counted
    but never stops the batch. This class does not touch the per-user
    full-sync flag; marking it is the caller's decision.
    """

    def __init__(self, client: StoreClient) -> None:
        """Initialize the orchestrator.

        Args:
            client: Store client used for every upload.
        """
        self._client = client

    def run(
        self,
        root: Path,
        identity: Identity,
        on_progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> SyncSummary:
        """Enumerate and upload a workspace.

        Args:
            root: Workspace root directory.
            identity: Owner of the uploaded files.
            on_progress: Called with (index, total, file name) after each attempt.
            cancel: Optional event checked between files.

        Returns:
            SyncSummary with attempted and succeeded counts.
        """
        root = Path(root)
        records = enumerate_workspace(root, load_classifier(root), cancel=cancel)
        if cancel is not None and cancel.is_set():
            return SyncSummary(cancelled=True)
        if not records:
            logger.info("No files matched the sync filters")
            return SyncSummary()

        logger.info(f"Starting full workspace sync: {len(records)} files")
        return self.upload_all(records, root.name, identity, on_progress, cancel)

    def upload_all(
        self,
        records: list[FileRecord],
        workspace_name: str,
        identity: Identity,
        on_progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> SyncSummary:
        """Upload an already enumerated batch of files."""
        summary = SyncSummary()
        total = len(records)

        for index, record in enumerate(records, start=1):
            if cancel is not None and cancel.is_set():
                logger.info(f"Full sync cancelled after {summary.attempted}/{total} files")
                summary.cancelled = True
                break

            ok = self._upload_one(record, workspace_name, identity)
            summary.record(record.relative_path, ok)

            if on_progress:
                on_progress(index, total, record.name)

        logger.info(
            f"Full sync finished: {summary.succeeded}/{summary.attempted} files uploaded"
        )
        return summary

    def _upload_one(
        self, record: FileRecord, workspace_name: str, identity: Identity
    ) -> bool:
        try:
            self._client.upload(record, identity, workspace_name)
        except TransferError as e:
            logger.error(f"Failed to upload {record.relative_path} ({e.kind}): {e}")
            return False
        except OSError as e:
            logger.error(f"Failed to read {record.relative_path}: {e}")
            return False
        return True
