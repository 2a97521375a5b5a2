"""Sync session: the engine wired to its collaborators.

This module provides:
- SyncSession: Host-level operations (activate, login, logout, status,
  full sync, download, save handling) for one workspace root
- StatusReport: Snapshot returned by SyncSession.status()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from codesync.client.sync.debounce import DEFAULT_DEBOUNCE_S, SaveDebouncer
from codesync.client.sync.download import DownloadOrchestrator
from codesync.client.sync.ignore import FileClassifier, load_classifier
from codesync.client.sync.restore import RestoreOrchestrator, RestoreOutcome
from codesync.client.sync.types import (
    FileRecord,
    NoActiveIdentityError,
    NoWorkspaceOpenError,
    RemoteFileDescriptor,
    Selection,
    SyncSummary,
    TransferError,
)
from codesync.client.sync.upload import FullSync
from codesync.client.ui import progress_reporter

if TYPE_CHECKING:
    import threading

    from codesync.client.api import StoreClient
    from codesync.client.identity import IdentityResolver
    from codesync.client.state import LocalSyncState
    from codesync.client.ui import Prompter
    from codesync.core.types import Identity

logger = logging.getLogger(__name__)

LOGIN_NOW = "Login Now"
GRANT_ACCESS = "Grant Access"
LATER = "Later"
CONFIRM_LOGOUT = "Yes, Logout"
CANCEL = "Cancel"


@dataclass
class StatusReport:
    """Snapshot of the signed-in user's sync status."""

    email: str
    provider: str
    full_sync_done: bool
    cloud_file_count: int | None = None

    def describe(self) -> str:
        lines = [
            f"CodeSync active for {self.email} ({self.provider})",
            "Full sync completed" if self.full_sync_done else "Pending full sync",
        ]
        if self.cloud_file_count is not None:
            lines.append(f"Cloud files: {self.cloud_file_count}")
        return "\n".join(lines)


class SyncSession:
    """Runs the sync engine for a single workspace root.

    Precondition failures (no workspace, no signed-in user) abort the
    requested operation with NoWorkspaceOpenError / NoActiveIdentityError.
    """

    def __init__(
        self,
        client: StoreClient,
        state: LocalSyncState,
        resolver: IdentityResolver,
        ui: Prompter,
        root: Path | None = None,
        debounce_delay: float = DEFAULT_DEBOUNCE_S,
        per_file_debounce: bool = False,
    ) -> None:
        """Initialize the session.

        Args:
            client: Store client.
            state: Local state store (session and per-user flags).
            resolver: Identity provider.
            ui: Host UI used for decisions, progress and messages.
            root: Workspace root, or None when no folder is open.
            debounce_delay: Quiet period before a saved file is uploaded.
            per_file_debounce: Debounce each file separately.
        """
        self._client = client
        self._state = state
        self._resolver = resolver
        self._ui = ui
        self._root = Path(root).resolve() if root is not None else None

        self._full_sync = FullSync(client)
        self._downloader = DownloadOrchestrator(client)
        self._restore = RestoreOrchestrator(state, self._full_sync, self._downloader, ui)
        self._debouncer = SaveDebouncer(
            self._upload_saved,
            delay=debounce_delay,
            per_file=per_file_debounce,
            on_status=ui.status,
        )
        self._classifier: FileClassifier | None = None

    @property
    def root(self) -> Path | None:
        return self._root

    @property
    def restore(self) -> RestoreOrchestrator:
        return self._restore

    @property
    def debouncer(self) -> SaveDebouncer:
        return self._debouncer

    def close(self) -> None:
        """Cancel pending debounced uploads."""
        self._debouncer.stop()

    # === Preconditions ===

    def require_root(self) -> Path:
        if self._root is None or not self._root.is_dir():
            raise NoWorkspaceOpenError()
        return self._root

    def require_identity(self) -> Identity:
        identity = self._state.get_active_identity()
        if identity is None:
            raise NoActiveIdentityError()
        return identity

    @property
    def classifier(self) -> FileClassifier:
        if self._classifier is None:
            root = self.require_root()
            self._classifier = load_classifier(root)
        return self._classifier

    # === Activation and accounts ===

    def activate(self) -> RestoreOutcome | None:
        """Initialise on start-up.

        Returns:
            The restore outcome if the restore decision ran, else None.
        """
        session = self._state.get_session()
        if session is None:
            choice = self._ui.confirm(
                "Welcome to CodeSync! Use 'codesync login' to get started.",
                [LOGIN_NOW],
            )
            if choice == LOGIN_NOW:
                return self.login()
            return None

        if not session.active:
            self._ui.info("CodeSync is inactive. Use 'codesync login' to resume syncing.")
            return None

        result = self._resolver.resolve_silent()
        logger.debug(f"Silent account lookup: {result}")

        if not result.found:
            choice = self._ui.confirm(
                "Sign in to GitHub or Microsoft and grant access to enable auto-sync.",
                [GRANT_ACCESS, LATER],
            )
            if choice != GRANT_ACCESS:
                return None
            result = self._resolver.resolve_interactive()
            if not result.found:
                self._ui.warn("Could not access your account session.")
                return None
            identity = result.to_identity()
            self._state.set_session(identity)
            outcome = self._check_restore(identity)
            self._ui.info(f"CodeSync active: {identity.email}")
            return outcome

        identity = result.to_identity()
        self._state.set_session(identity)

        outcome = None
        if not self._state.is_full_sync_done(identity.email):
            outcome = self._check_restore(identity)

        self._ui.info(f"CodeSync active: {identity.email}")
        return outcome

    def login(self) -> RestoreOutcome | None:
        """Sign in interactively, or show status if already signed in."""
        if self._state.get_active_identity() is not None:
            self.status()
            return None

        result = self._resolver.resolve_interactive()
        if not result.found:
            self._ui.error("Could not access your account session.")
            return None

        identity = result.to_identity()
        self._state.set_session(identity)
        outcome = self._check_restore(identity)
        self._ui.info(f"CodeSync active: {identity.email}")
        return outcome

    def relogin(self) -> RestoreOutcome | None:
        """Sign in again interactively and force the restore decision to re-run."""
        result = self._resolver.resolve_interactive()
        if not result.found:
            self._ui.error("Could not obtain a session.")
            return None

        identity = result.to_identity()
        self._state.set_session(identity)
        self._state.set_full_sync_done(identity.email, False)
        self._restore.reset(identity.email)
        self._ui.info(f"CodeSync enabled for {identity.email}")
        return self._check_restore(identity)

    def logout(self, confirm: bool = True) -> bool:
        """Sign out and forget every per-user record.

        Returns:
            True if the user was signed out.
        """
        session = self._state.get_session()
        if session is None or not session.active:
            self._ui.info("No active user to logout")
            return False

        if confirm:
            choice = self._ui.confirm(
                f"Logout from CodeSync?\nCurrent user: {session.email}\n"
                "This will stop auto-sync and require re-authentication.",
                [CONFIRM_LOGOUT, CANCEL],
            )
            if choice != CONFIRM_LOGOUT:
                return False

        self._debouncer.stop()
        self._state.clear_user(session.email)
        self._restore.reset(session.email)
        logger.info(f"User logged out: {session.email}")
        self._ui.info("Logged out. Use 'codesync login' to sign in again.")
        return True

    def _check_restore(self, identity: Identity) -> RestoreOutcome | None:
        if self._root is None or not self._root.is_dir():
            logger.info("No workspace folder - skipping restore check")
            return None
        return self._restore.run(self._root, identity)

    # === Status ===

    def status(self) -> StatusReport | None:
        """Report the signed-in user, full-sync flag and cloud file count."""
        session = self._state.get_session()
        if session is None or not session.active:
            self._ui.info("CodeSync not active - no account signed in.")
            return None

        identity = session.to_identity()
        report = StatusReport(
            email=identity.email,
            provider=identity.provider.value,
            full_sync_done=self._state.is_full_sync_done(identity.email),
        )
        try:
            report.cloud_file_count = self._client.count_files(identity)
        except TransferError as e:
            logger.debug(f"Could not fetch cloud file count: {e}")

        self._ui.info(report.describe())
        return report

    # === Transfers ===

    def sync_workspace(self, cancel: threading.Event | None = None) -> SyncSummary:
        """Upload every syncable file of the workspace."""
        identity = self.require_identity()
        root = self.require_root()

        summary = self._full_sync.run(
            root, identity, on_progress=progress_reporter(self._ui), cancel=cancel
        )
        if summary.attempted == 0 and not summary.cancelled:
            self._ui.info("No files matched your sync filters.")
        else:
            self._ui.info(
                f"{summary.succeeded}/{summary.attempted} files synced to cloud"
            )
        return summary

    def download_workspace(
        self,
        selection: Selection | None = None,
        cancel: threading.Event | None = None,
    ) -> SyncSummary | None:
        """Download remote files into the workspace.

        Args:
            selection: What to download; None asks the user to choose.
            cancel: Optional event checked between files.

        Returns:
            SyncSummary, or None if the user made no selection.

        Raises:
            TransferError: If a listing or bulk download request fails.
        """
        identity = self.require_identity()
        root = self.require_root()

        if selection is None:
            selection = self._downloader.resolve_selection(identity, self._ui)
            if selection is None:
                return None

        summary = self._downloader.materialize(
            identity,
            selection,
            root,
            on_progress=progress_reporter(self._ui),
            cancel=cancel,
        )
        self._ui.info(f"{summary.succeeded}/{summary.attempted} files restored to workspace")
        return summary

    def list_remote_files(self) -> list[RemoteFileDescriptor]:
        """List every cloud file of the signed-in user."""
        identity = self.require_identity()
        return self._client.list_files(identity)

    # === Save handling ===

    def on_saved(self, path: Path) -> bool:
        """Handle a file save event.

        Returns:
            True if an upload was scheduled.
        """
        if self._state.get_active_identity() is None:
            logger.debug("Auto-sync skipped - user logged out")
            return False
        if self._root is None:
            return False

        path = Path(path).resolve()
        try:
            relative = path.relative_to(self._root)
        except ValueError:
            logger.debug(f"Skipping file outside workspace: {path}")
            return False

        if not self.classifier.is_syncable(relative):
            logger.debug(f"Skipping non-relevant file: {relative}")
            return False

        self._debouncer.notify_saved(path)
        return True

    def _upload_saved(self, path: Path) -> None:
        identity = self.require_identity()
        root = self.require_root()
        record = FileRecord.from_path(path, root)
        self._client.upload(record, identity, root.name)
