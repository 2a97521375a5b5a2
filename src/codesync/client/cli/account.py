"""Account commands for the CodeSync CLI.

Commands:
- activate: Start-up check, runs the restore decision if needed
- login: Sign in (or show status if already signed in)
- relogin: Sign in again and re-run the restore decision
- logout: Sign out and forget per-user state
- status: Show account and sync status
"""

from __future__ import annotations

import click

from codesync.client.cli.runtime import CliOptions, fail, open_session
from codesync.client.sync.types import SyncError


@click.command()
@click.pass_obj
def activate(options: CliOptions) -> None:
    """Check the account and resolve the first sync for this workspace."""
    with open_session(options) as session:
        try:
            session.activate()
        except SyncError as e:
            fail(e)


@click.command()
@click.pass_obj
def login(options: CliOptions) -> None:
    """Sign in to CodeSync.

    On first sign-in an empty workspace offers to restore files from the
    cloud, and a populated one is uploaded.
    """
    with open_session(options) as session:
        try:
            session.login()
        except SyncError as e:
            fail(e)


@click.command()
@click.pass_obj
def relogin(options: CliOptions) -> None:
    """Sign in again and force a fresh full sync decision."""
    with open_session(options) as session:
        try:
            session.relogin()
        except SyncError as e:
            fail(e)


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_obj
def logout(options: CliOptions, yes: bool) -> None:
    """Sign out and stop auto-sync."""
    with open_session(options) as session:
        session.logout(confirm=not yes)


@click.command()
@click.pass_obj
def status(options: CliOptions) -> None:
    """Show the signed-in account and sync status."""
    with open_session(options) as session:
        session.status()
