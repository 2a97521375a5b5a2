"""Shared CLI plumbing: global options, logging and session construction."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import click

from codesync.client.api import StoreClient
from codesync.client.cli.config import (
    get_server_config,
    get_state_db,
    load_config,
    save_config,
)
from codesync.client.identity import ConfigIdentityResolver
from codesync.client.session import SyncSession
from codesync.client.state import LocalSyncState
from codesync.client.sync.types import SyncError
from codesync.client.ui import ClickPrompter


@dataclass
class CliOptions:
    """Options shared by every command."""

    workspace_root: Path | None = None
    server_url: str | None = None
    verbose: bool = False
    quiet: bool = False


def configure_logging(verbose: bool) -> None:
    """Send codesync log records to stderr.

    Warnings and errors by default, everything with --verbose.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))

    codesync_logger = logging.getLogger("codesync")
    for existing in codesync_logger.handlers[:]:
        codesync_logger.removeHandler(existing)
    codesync_logger.addHandler(handler)
    codesync_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    codesync_logger.propagate = False


@contextmanager
def open_session(options: CliOptions, per_file_debounce: bool = False) -> Iterator[SyncSession]:
    """Build a SyncSession from CLI options and close it afterwards."""
    server_config = get_server_config(options.server_url)
    resolver = ConfigIdentityResolver(config=load_config(), save=save_config)
    state = LocalSyncState(get_state_db())
    client = StoreClient(server_config)
    session = SyncSession(
        client=client,
        state=state,
        resolver=resolver,
        ui=ClickPrompter(quiet=options.quiet),
        root=options.workspace_root,
        debounce_delay=server_config.debounce_delay,
        per_file_debounce=per_file_debounce,
    )
    try:
        yield session
    finally:
        session.close()
        client.close()
        state.close()


def fail(error: SyncError | str) -> None:
    """Print an error and exit with status 1."""
    click.echo(f"Error: {error}", err=True)
    sys.exit(1)
