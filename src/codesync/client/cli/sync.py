"""Transfer commands for the CodeSync CLI.

Commands:
- sync: Upload the whole workspace
- download: Restore files from the cloud into the workspace
- files: List cloud files
- watch: Upload files as they are saved
"""

from __future__ import annotations

import threading
import time

import click

from codesync.client.cli.runtime import CliOptions, fail, open_session
from codesync.client.sync.debounce import SaveWatcher
from codesync.client.sync.types import (
    AllFiles,
    ByFiles,
    ByWorkspace,
    Selection,
    SyncError,
    SyncSummary,
)


@click.command()
@click.pass_obj
def sync(options: CliOptions) -> None:
    """Upload every syncable file of the workspace."""
    cancel = threading.Event()
    outcome: dict[str, object] = {}

    with open_session(options) as session:

        def run() -> None:
            try:
                outcome["summary"] = session.sync_workspace(cancel=cancel)
            except SyncError as e:
                outcome["error"] = e

        # Run in a worker so Ctrl+C can cancel between files
        worker = threading.Thread(target=run, daemon=True)
        worker.start()
        try:
            while worker.is_alive():
                worker.join(timeout=0.2)
        except KeyboardInterrupt:
            click.echo("\nCancelling after the current file...", err=True)
            cancel.set()
            worker.join()

        if "error" in outcome:
            fail(str(outcome["error"]))
            return

        summary = outcome.get("summary")
        if isinstance(summary, SyncSummary) and summary.failed:
            click.echo(click.style("\nFailed:", fg="red"))
            for path in summary.failed:
                click.echo(f"  ✗ {path}")


@click.command()
@click.option("--all", "download_all", is_flag=True, help="Download every file of every workspace.")
@click.option("--workspace", "workspace_name", default=None, help="Remote workspace to download.")
@click.option(
    "--file",
    "files",
    multiple=True,
    help="File of --workspace to download (repeatable).",
)
@click.pass_obj
def download(
    options: CliOptions,
    download_all: bool,
    workspace_name: str | None,
    files: tuple[str, ...],
) -> None:
    """Restore files from the cloud into the workspace.

    Without options, lists your workspaces and lets you choose.
    Existing local files are overwritten.
    """
    if files and not workspace_name:
        fail("--file requires --workspace")
    if download_all and workspace_name:
        fail("--all cannot be combined with --workspace")

    selection: Selection | None = None
    if download_all:
        selection = AllFiles()
    elif workspace_name and files:
        selection = ByFiles(workspace_name, files)
    elif workspace_name:
        selection = ByWorkspace(workspace_name)

    with open_session(options) as session:
        try:
            summary = session.download_workspace(selection)
        except SyncError as e:
            fail(e)
            return

        if summary is None:
            click.echo("Nothing selected.")
        elif summary.failed:
            click.echo(click.style("\nFailed:", fg="red"))
            for path in summary.failed:
                click.echo(f"  ✗ {path}")


@click.command()
@click.pass_obj
def files(options: CliOptions) -> None:
    """List every file stored in the cloud for this account."""
    with open_session(options) as session:
        try:
            remote_files = session.list_remote_files()
        except SyncError as e:
            fail(e)
            return

        for index, remote in enumerate(remote_files, start=1):
            click.echo(f"{index}. {remote.relative_path} ({remote.size_bytes} bytes)")
        click.echo(f"Found {len(remote_files)} files.")


@click.command()
@click.option("--per-file", is_flag=True, help="Debounce each file separately.")
@click.pass_obj
def watch(options: CliOptions, per_file: bool) -> None:
    """Upload files as they are saved (Ctrl+C to stop)."""
    with open_session(options, per_file_debounce=per_file) as session:
        try:
            session.require_identity()
            root = session.require_root()
        except SyncError as e:
            fail(e)
            return

        click.echo(f"Watching {root} for saved files... (Ctrl+C to stop)")
        with SaveWatcher(root, session.on_saved):
            try:
                while True:
                    time.sleep(1.0)
            except KeyboardInterrupt:
                click.echo("\nStopping...")
        session.debouncer.flush()
