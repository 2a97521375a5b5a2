"""Tests for SyncSession."""

from dataclasses import dataclass, field
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from codesync.client.session import (
    CONFIRM_LOGOUT,
    GRANT_ACCESS,
    LATER,
    LOGIN_NOW,
    SyncSession,
)
from codesync.client.state import LocalSyncState
from codesync.client.sync.restore import RESTORE_ALL, RestoreOutcome
from codesync.client.sync.types import (
    AllFiles,
    NoActiveIdentityError,
    NoWorkspaceOpenError,
    RemoteFileDescriptor,
    TransferNetworkError,
)
from codesync.core.types import Identity, IdentityResult
from tests.fakes import FakePrompter, make_file


@dataclass
class FakeResolver:
    """Identity provider returning fixed results."""

    silent: IdentityResult = field(default_factory=IdentityResult.not_found)
    interactive: IdentityResult = field(default_factory=IdentityResult.not_found)
    interactive_calls: int = 0

    def resolve_silent(self) -> IdentityResult:
        return self.silent

    def resolve_interactive(self) -> IdentityResult:
        self.interactive_calls += 1
        return self.interactive


def found(identity: Identity) -> IdentityResult:
    return IdentityResult(found=True, email=identity.email, provider=identity.provider)


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.list_files.return_value = [RemoteFileDescriptor("main.py")]
    client.download.return_value = "print(1)\n"
    client.count_files.return_value = 4
    return client


def make_session(
    client: MagicMock,
    state: LocalSyncState,
    ui: FakePrompter,
    root: Path | None,
    resolver: FakeResolver | None = None,
    **kwargs: object,
) -> SyncSession:
    return SyncSession(
        client=client,
        state=state,
        resolver=resolver or FakeResolver(),
        ui=ui,
        root=root,
        **kwargs,  # type: ignore[arg-type]
    )


class TestActivate:
    """Tests for start-up activation."""

    def test_never_signed_in_offers_login(
        self, client: MagicMock, state: LocalSyncState, workspace: Path
    ) -> None:
        ui = FakePrompter(confirm_answers=[None])

        assert make_session(client, state, ui, workspace).activate() is None
        assert ui.confirms[0][1] == (LOGIN_NOW,)

    def test_never_signed_in_login_now(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        """Choosing Login Now signs in and runs the restore decision."""
        ui = FakePrompter(confirm_answers=[LOGIN_NOW, RESTORE_ALL])
        resolver = FakeResolver(interactive=found(identity))

        outcome = make_session(client, state, ui, workspace, resolver).activate()

        assert outcome is RestoreOutcome.RESTORED
        assert state.get_active_identity() == identity
        assert (workspace / "main.py").read_text() == "print(1)\n"

    def test_inactive_session(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity, active=False)
        ui = FakePrompter()

        assert make_session(client, state, ui, workspace).activate() is None
        assert ui.confirms == []
        assert "inactive" in ui.texts("info")[0]

    def test_returning_user_with_flag_set(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        """A user who already synced is activated without any decision."""
        state.set_session(identity)
        state.set_full_sync_done(identity.email)
        ui = FakePrompter()
        resolver = FakeResolver(silent=found(identity))

        assert make_session(client, state, ui, workspace, resolver).activate() is None
        assert ui.confirms == []
        assert ui.texts("info") == [f"CodeSync active: {identity.email}"]

    def test_flag_unset_runs_restore(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        make_file(workspace, "app.py")
        ui = FakePrompter()
        resolver = FakeResolver(silent=found(identity))

        outcome = make_session(client, state, ui, workspace, resolver).activate()

        assert outcome is RestoreOutcome.PUSHED
        assert state.is_full_sync_done(identity.email) is True
        client.upload.assert_called_once()

    def test_silent_lookup_fails_then_grant(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        ui = FakePrompter(confirm_answers=[GRANT_ACCESS, LATER])
        resolver = FakeResolver(interactive=found(identity))

        outcome = make_session(client, state, ui, workspace, resolver).activate()

        assert outcome is RestoreOutcome.DEFERRED
        assert resolver.interactive_calls == 1
        assert ui.confirms[0][1] == (GRANT_ACCESS, LATER)

    def test_silent_lookup_fails_later(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        ui = FakePrompter(confirm_answers=[LATER])
        resolver = FakeResolver()

        assert make_session(client, state, ui, workspace, resolver).activate() is None
        assert resolver.interactive_calls == 0

    def test_no_workspace_skips_restore(
        self, client: MagicMock, state: LocalSyncState, identity: Identity
    ) -> None:
        state.set_session(identity)
        ui = FakePrompter()
        resolver = FakeResolver(silent=found(identity))

        assert make_session(client, state, ui, None, resolver).activate() is None
        assert ui.confirms == []
        assert state.is_full_sync_done(identity.email) is False


class TestAccounts:
    """Tests for login, relogin and logout."""

    def test_login_when_active_shows_status(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        ui = FakePrompter()
        resolver = FakeResolver(interactive=found(identity))

        assert make_session(client, state, ui, workspace, resolver).login() is None
        assert resolver.interactive_calls == 0
        assert "Cloud files: 4" in ui.texts("info")[0]

    def test_login_failure(
        self, client: MagicMock, state: LocalSyncState, workspace: Path
    ) -> None:
        ui = FakePrompter()

        assert make_session(client, state, ui, workspace).login() is None
        assert ui.texts("error") == ["Could not access your account session."]
        assert state.get_session() is None

    def test_relogin_clears_flag_and_reruns(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        """Re-login forces the decision again even after it ran this process."""
        ui = FakePrompter(confirm_answers=[RESTORE_ALL, LATER])
        resolver = FakeResolver(silent=found(identity), interactive=found(identity))
        state.set_session(identity)
        session = make_session(client, state, ui, workspace, resolver)
        session.activate()
        assert state.is_full_sync_done(identity.email) is True
        (workspace / "main.py").unlink()

        outcome = session.relogin()

        assert outcome is RestoreOutcome.DEFERRED
        assert state.is_full_sync_done(identity.email) is False
        assert len(ui.confirms) == 2

    def test_logout(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        """Logout forgets the session and the user's flag."""
        state.set_session(identity)
        state.set_full_sync_done(identity.email)
        ui = FakePrompter(confirm_answers=[CONFIRM_LOGOUT])

        assert make_session(client, state, ui, workspace).logout() is True
        assert state.get_session() is None
        assert state.is_full_sync_done(identity.email) is False

    def test_logout_cancelled(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        ui = FakePrompter(confirm_answers=[None])

        assert make_session(client, state, ui, workspace).logout() is False
        assert state.get_active_identity() == identity

    def test_logout_without_session(
        self, client: MagicMock, state: LocalSyncState, workspace: Path
    ) -> None:
        ui = FakePrompter()

        assert make_session(client, state, ui, workspace).logout(confirm=False) is False


class TestStatus:
    """Tests for status."""

    def test_not_signed_in(
        self, client: MagicMock, state: LocalSyncState, workspace: Path
    ) -> None:
        ui = FakePrompter()

        assert make_session(client, state, ui, workspace).status() is None

    def test_report(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        ui = FakePrompter()

        report = make_session(client, state, ui, workspace).status()

        assert report is not None
        assert report.full_sync_done is False
        assert report.cloud_file_count == 4
        assert ui.texts("info") == [
            "CodeSync active for dev@example.com (github)\nPending full sync\nCloud files: 4"
        ]

    def test_store_unreachable(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        """Status still reports locally known facts when the store is down."""
        state.set_session(identity)
        client.count_files.side_effect = TransferNetworkError("offline")

        report = make_session(client, state, FakePrompter(), workspace).status()

        assert report is not None
        assert report.cloud_file_count is None


class TestTransfers:
    """Tests for explicit transfers and preconditions."""

    def test_sync_requires_identity(
        self, client: MagicMock, state: LocalSyncState, workspace: Path
    ) -> None:
        with pytest.raises(NoActiveIdentityError):
            make_session(client, state, FakePrompter(), workspace).sync_workspace()

    def test_sync_requires_workspace(
        self, client: MagicMock, state: LocalSyncState, identity: Identity
    ) -> None:
        state.set_session(identity)

        with pytest.raises(NoWorkspaceOpenError):
            make_session(client, state, FakePrompter(), None).sync_workspace()

    def test_sync_workspace(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        """An explicit sync uploads but never touches the flag."""
        state.set_session(identity)
        make_file(workspace, "a.py")
        make_file(workspace, "b.py")
        ui = FakePrompter()

        summary = make_session(client, state, ui, workspace).sync_workspace()

        assert summary.succeeded == 2
        assert "2/2 files synced to cloud" in ui.texts("info")
        assert state.is_full_sync_done(identity.email) is False

    def test_sync_nothing_matched(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        ui = FakePrompter()

        make_session(client, state, ui, workspace).sync_workspace()

        assert ui.texts("info") == ["No files matched your sync filters."]

    def test_download_with_selection(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        ui = FakePrompter()

        summary = make_session(client, state, ui, workspace).download_workspace(AllFiles())

        assert summary is not None
        assert summary.succeeded == 1
        assert (workspace / "main.py").exists()

    def test_download_nothing_chosen(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        client.list_workspaces.return_value = []

        assert make_session(client, state, FakePrompter(), workspace).download_workspace() is None

    def test_list_remote_files(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)

        files = make_session(client, state, FakePrompter(), workspace).list_remote_files()

        assert [f.relative_path for f in files] == ["main.py"]
        client.list_files.assert_called_once_with(identity)


class TestOnSaved:
    """Tests for save handling."""

    def test_schedules_upload(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        path = make_file(workspace, "src/app.py")
        ui = FakePrompter()
        session = make_session(client, state, ui, workspace, debounce_delay=60.0)

        assert session.on_saved(path) is True
        session.debouncer.flush()

        [call] = client.upload.call_args_list
        record, who, workspace_name = call.args
        assert record.relative_path == "src/app.py"
        assert who == identity
        assert workspace_name == "myproject"
        assert ui.texts("status") == ["Synced"]

    def test_skips_when_logged_out(
        self, client: MagicMock, state: LocalSyncState, workspace: Path
    ) -> None:
        path = make_file(workspace, "app.py")

        assert make_session(client, state, FakePrompter(), workspace).on_saved(path) is False

    def test_skips_outside_workspace(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, tmp_path: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        path = make_file(tmp_path / "elsewhere", "app.py")

        assert make_session(client, state, FakePrompter(), workspace).on_saved(path) is False

    @pytest.mark.parametrize("relative", ["logo.png", "node_modules/x.js", ".vscode/settings.json"])
    def test_skips_non_syncable(
        self,
        client: MagicMock,
        state: LocalSyncState,
        workspace: Path,
        identity: Identity,
        relative: str,
    ) -> None:
        state.set_session(identity)
        path = make_file(workspace, relative)
        session = make_session(client, state, FakePrompter(), workspace)

        assert session.on_saved(path) is False
        assert session.debouncer.pending_count == 0

    def test_upload_failure_reported(
        self, client: MagicMock, state: LocalSyncState, workspace: Path, identity: Identity
    ) -> None:
        state.set_session(identity)
        client.upload.side_effect = TransferNetworkError("offline")
        path = make_file(workspace, "app.py")
        ui = FakePrompter()
        session = make_session(client, state, ui, workspace, debounce_delay=60.0)

        session.on_saved(path)
        session.debouncer.flush()

        assert ui.texts("status") == ["Sync failed"]
