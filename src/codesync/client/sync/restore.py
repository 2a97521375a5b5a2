"""First-activation restore logic.

This module provides:
- RestoreOutcome: How an activation was resolved
- RestoreOrchestrator: Decides between pushing local files and restoring
  remote ones when a user has never completed a full sync

State machine:
    Start -> DetectEmptiness -> EmptyChoice      -> Resolved
                             -> NonEmptyAutoPush -> Resolved

    | Workspace | Choice            | Action                        | Flag   |
    |-----------|-------------------|-------------------------------|--------|
    | non-empty | (none presented)  | full upload                   | set    |
    | empty     | restore all       | download every remote file    | set*   |
    | empty     | browse            | download a chosen selection   | as-is  |
    | empty     | start fresh       | full upload                   | set    |
    | empty     | later / dismissed | nothing                       | as-is  |

    * only when the store actually had files to restore
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from codesync.client.sync.scanner import is_workspace_empty
from codesync.client.sync.types import AllFiles, SyncSummary, TransferError
from codesync.client.ui import progress_reporter

if TYPE_CHECKING:
    from codesync.client.state import LocalSyncState
    from codesync.client.sync.download import DownloadOrchestrator
    from codesync.client.sync.upload import FullSync
    from codesync.client.ui import Prompter
    from codesync.core.types import Identity

logger = logging.getLogger(__name__)

RESTORE_ALL = "Yes, Restore Files"
BROWSE = "Browse Files"
START_FRESH = "No, Start Fresh"
LATER = "Later"

EMPTY_WORKSPACE_OPTIONS = (RESTORE_ALL, BROWSE, START_FRESH, LATER)


class RestoreOutcome(Enum):
    """How a restore decision was resolved."""

    SKIPPED = "skipped"  # Already resolved in this process
    PUSHED = "pushed"  # Non-empty workspace uploaded automatically
    RESTORED = "restored"  # Everything downloaded
    NOTHING_TO_RESTORE = "nothing_to_restore"  # Store had no files
    BROWSED = "browsed"  # Selection downloaded
    STARTED_FRESH = "started_fresh"  # Empty workspace uploaded
    DEFERRED = "deferred"  # User postponed the decision
    FAILED = "failed"  # Listing or download request failed


class RestoreOrchestrator:
    """Resolves what to do the first time a user is seen on a workspace.

    The decision is made at most once per user per process. A fresh
    interactive login calls reset() after clearing the user's flag, which
    allows the decision to run again.
    """

    def __init__(
        self,
        state: LocalSyncState,
        full_sync: FullSync,
        downloader: DownloadOrchestrator,
        ui: Prompter,
    ) -> None:
        self._state = state
        self._full_sync = full_sync
        self._downloader = downloader
        self._ui = ui
        self._resolved: set[str] = set()
        self._lock = threading.Lock()

    def is_resolved(self, email: str) -> bool:
        with self._lock:
            return email in self._resolved

    def reset(self, email: str) -> None:
        """Allow the decision to run again for a user in this process."""
        with self._lock:
            self._resolved.discard(email)

    def run(
        self,
        root: Path,
        identity: Identity,
        cancel: threading.Event | None = None,
    ) -> RestoreOutcome:
        """Run the state machine for one activation.

        Args:
            root: Workspace root directory.
            identity: User being activated.
            cancel: Optional event forwarded to the batch operations.

        Returns:
            The outcome reached.
        """
        with self._lock:
            if identity.email in self._resolved:
                logger.debug(f"Restore already resolved for {identity.email}")
                return RestoreOutcome.SKIPPED
            self._resolved.add(identity.email)

        root = Path(root)
        if not is_workspace_empty(root):
            logger.info("Workspace has files, uploading them as the source of truth")
            self._push(root, identity, cancel)
            return RestoreOutcome.PUSHED

        choice = self._ui.confirm(
            "Empty workspace detected. Would you like to restore your files from the cloud?",
            EMPTY_WORKSPACE_OPTIONS,
        )

        if choice == RESTORE_ALL:
            return self._restore_all(root, identity, cancel)
        if choice == BROWSE:
            return self._browse(root, identity, cancel)
        if choice == START_FRESH:
            self._push(root, identity, cancel)
            return RestoreOutcome.STARTED_FRESH

        logger.info("Restore decision deferred to the next activation")
        return RestoreOutcome.DEFERRED

    def _push(
        self,
        root: Path,
        identity: Identity,
        cancel: threading.Event | None,
    ) -> SyncSummary:
        self._ui.info("First time login detected, syncing entire workspace...")
        summary = self._full_sync.run(
            root, identity, on_progress=progress_reporter(self._ui), cancel=cancel
        )
        if summary.cancelled:
            self._ui.warn("Full sync cancelled; it will run again on next activation.")
            return summary

        self._state.set_full_sync_done(identity.email)
        self._ui.info(
            f"Full workspace sync completed: {summary.succeeded}/{summary.attempted} files uploaded"
        )
        return summary

    def _restore_all(
        self,
        root: Path,
        identity: Identity,
        cancel: threading.Event | None,
    ) -> RestoreOutcome:
        self._ui.info("Fetching your files from cloud...")
        try:
            summary = self._downloader.materialize(
                identity,
                AllFiles(),
                root,
                on_progress=progress_reporter(self._ui),
                cancel=cancel,
            )
        except TransferError as e:
            logger.error(f"Restore failed: {e}")
            self._ui.error(f"Failed to fetch files: {e}")
            return RestoreOutcome.FAILED

        if summary.cancelled:
            self._ui.warn("Restore cancelled.")
            return RestoreOutcome.DEFERRED
        if summary.attempted == 0:
            self._ui.info("No files found in cloud for this account.")
            return RestoreOutcome.NOTHING_TO_RESTORE

        self._state.set_full_sync_done(identity.email)
        self._ui.info(
            f"{summary.succeeded}/{summary.attempted} files restored to workspace"
        )
        return RestoreOutcome.RESTORED

    def _browse(
        self,
        root: Path,
        identity: Identity,
        cancel: threading.Event | None,
    ) -> RestoreOutcome:
        try:
            selection = self._downloader.resolve_selection(identity, self._ui)
            if selection is None:
                return RestoreOutcome.DEFERRED
            summary = self._downloader.materialize(
                identity,
                selection,
                root,
                on_progress=progress_reporter(self._ui),
                cancel=cancel,
            )
        except TransferError as e:
            logger.error(f"Selective restore failed: {e}")
            self._ui.error(f"Failed to fetch files: {e}")
            return RestoreOutcome.FAILED

        self._ui.info(
            f"{summary.succeeded}/{summary.attempted} files restored to workspace"
        )
        return RestoreOutcome.BROWSED
