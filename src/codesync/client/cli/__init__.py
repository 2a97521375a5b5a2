"""Command-line interface for CodeSync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- activate: Start-up account check and first sync decision
- login: Sign in
- relogin: Sign in again and re-run the first sync decision
- logout: Sign out
- status: Show account and sync status
- sync: Upload the whole workspace
- download: Restore files from the cloud
- files: List cloud files
- watch: Upload files as they are saved
"""

from __future__ import annotations

from pathlib import Path

import click

from codesync.client.cli.account import activate, login, logout, relogin, status
from codesync.client.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from codesync.client.cli.runtime import CliOptions, configure_logging
from codesync.client.cli.sync import download, files, sync, watch


@click.group()
@click.version_option(package_name="codesync")
@click.option(
    "--workspace-root",
    "-C",
    type=click.Path(file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Workspace root directory.",
)
@click.option("--server", "server_url", default=None, help="Store URL (overrides config).")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.option("--quiet", "-q", is_flag=True, help="Hide progress output.")
@click.pass_context
def cli(
    ctx: click.Context,
    workspace_root: Path,
    server_url: str | None,
    verbose: bool,
    quiet: bool,
) -> None:
    """CodeSync - keep your workspace in sync across devices."""
    configure_logging(verbose)
    ctx.obj = CliOptions(
        workspace_root=workspace_root,
        server_url=server_url,
        verbose=verbose,
        quiet=quiet,
    )


# Account commands
cli.add_command(activate)
cli.add_command(login)
cli.add_command(relogin)
cli.add_command(logout)
cli.add_command(status)

# Transfer commands
cli.add_command(sync)
cli.add_command(download)
cli.add_command(files)
cli.add_command(watch)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]
