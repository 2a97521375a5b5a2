"""Selective download of remote files onto disk.

This module provides:
- DownloadOrchestrator: Resolves a Selection and materializes it under a root
- write_file: Writes one file with directories created first
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING

from codesync.client.sync.types import (
    AllFiles,
    ByFiles,
    ByWorkspace,
    ProgressCallback,
    RemoteFileContent,
    Selection,
    SyncSummary,
    TransferError,
    UnsafePathError,
)

if TYPE_CHECKING:
    import threading

    from codesync.client.api import StoreClient
    from codesync.client.ui import Prompter
    from codesync.core.types import Identity

logger = logging.getLogger(__name__)

DOWNLOAD_ALL = "Download All Files"
SELECT_FILES = "Select Specific Files"


def resolve_destination(root: Path, relative_path: str) -> Path:
    """Join a remote relative path onto a local root.

    Raises:
        UnsafePathError: If the path is absolute or climbs out of root.
    """
    pure = PurePosixPath(relative_path.replace("\\", "/"))
    if pure.is_absolute() or ".." in pure.parts or not pure.parts:
        raise UnsafePathError(f"Refusing to write outside workspace: {relative_path}")
    return Path(root).joinpath(*pure.parts)


def write_file(root: Path, relative_path: str, content: str | bytes) -> Path:
    """Write downloaded content under root, overwriting any existing file.

    Parent directories are created first. Content goes to a temporary
    file that is renamed into place, so a failed write never leaves a
    truncated file behind.

    Returns:
        The path written.
    """
    local_path = resolve_destination(root, relative_path)
    local_path.parent.mkdir(parents=True, exist_ok=True)

    # Unique name in the target directory so no other file is touched
    fd, tmp_name = tempfile.mkstemp(
        dir=local_path.parent, prefix=f".{local_path.name}.", suffix=".tmp"
    )
    tmp_path = Path(tmp_name)
    try:
        if isinstance(content, bytes):
            with os.fdopen(fd, "wb") as f:
                f.write(content)
        else:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
        # mkstemp creates 0600; keep the mode of the file being replaced
        mode = local_path.stat().st_mode & 0o777 if local_path.exists() else 0o644
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, local_path)
    except Exception:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise
    return local_path


class DownloadOrchestrator:
    """Pulls remote files back onto disk.

    One orchestrator handles every kind of Selection: all files of a
    user, one whole workspace, or a chosen subset of a workspace.
    """

    def __init__(self, client: StoreClient) -> None:
        self._client = client

    # === Selection ===

    def resolve_selection(self, identity: Identity, ui: Prompter) -> Selection | None:
        """Ask the user what to download.

        Lists workspaces, lets the user pick one, then lists its files and
        lets the user take all of them or a subset.

        Returns:
            The selection, or None if the user backed out at any step.

        Raises:
            TransferError: If a listing fails.
        """
        workspaces = self._client.list_workspaces(identity)
        if not workspaces:
            ui.info("No workspaces found in cloud for this account.")
            return None

        workspace = ui.pick_one(workspaces, "Select a workspace to download")
        if workspace is None:
            return None

        files = self._client.list_workspace_files(identity, workspace.name)
        if not files:
            ui.info(f"Workspace '{workspace.name}' has no files.")
            return None

        choice = ui.confirm(
            f"Workspace '{workspace.name}' has {len(files)} files.",
            [DOWNLOAD_ALL, SELECT_FILES],
        )
        if choice == DOWNLOAD_ALL:
            return ByWorkspace(workspace.name)
        if choice != SELECT_FILES:
            return None

        picked = ui.pick_many(files, f"Select files from '{workspace.name}'")
        if not picked:
            return None
        return ByFiles(workspace.name, tuple(f.relative_path for f in picked))

    # === Materialization ===

    def materialize(
        self,
        identity: Identity,
        selection: Selection,
        root: Path,
        on_progress: ProgressCallback | None = None,
        cancel: threading.Event | None = None,
    ) -> SyncSummary:
        """Download a selection and write it under root.

        A failure on one file is logged and skipped. Listing or bulk
        request failures propagate, since nothing can be written then.

        Returns:
            SyncSummary with attempted and succeeded counts.

        Raises:
            TransferError: If the listing or bulk request fails.
        """
        root = Path(root)
        if isinstance(selection, AllFiles):
            return self._materialize_all(identity, root, on_progress, cancel)

        if isinstance(selection, ByFiles):
            contents = self._client.download_workspace_files(
                identity, selection.workspace_name, list(selection.paths)
            )
        elif isinstance(selection, ByWorkspace):
            contents = self._client.download_workspace_files(
                identity, selection.workspace_name
            )
        else:
            raise TypeError(f"Unknown selection: {selection!r}")

        summary = self._write_all(contents, root, on_progress, cancel)

        if isinstance(selection, ByFiles) and not summary.cancelled:
            returned = {c.relative_path for c in contents}
            for path in selection.paths:
                if path not in returned:
                    logger.warning(f"Store did not return selected file: {path}")
                    summary.record(path, ok=False)
        return summary

    def _materialize_all(
        self,
        identity: Identity,
        root: Path,
        on_progress: ProgressCallback | None,
        cancel: threading.Event | None,
    ) -> SyncSummary:
        files = self._client.list_files(identity)
        summary = SyncSummary()
        if not files:
            logger.info(f"No files found in cloud for {identity.email}")
            return summary

        logger.info(f"Found {len(files)} files in cloud for {identity.email}")
        total = len(files)
        for index, descriptor in enumerate(files, start=1):
            if cancel is not None and cancel.is_set():
                summary.cancelled = True
                break
            try:
                content = self._client.download(identity, descriptor.relative_path)
                write_file(root, descriptor.relative_path, content)
            except (TransferError, UnsafePathError, OSError) as e:
                logger.error(f"Failed to download {descriptor.relative_path}: {e}")
                summary.record(descriptor.relative_path, ok=False)
            else:
                logger.debug(f"Downloaded {descriptor.relative_path}")
                summary.record(descriptor.relative_path, ok=True)

            if on_progress:
                on_progress(index, total, descriptor.display_name)
        return summary

    def _write_all(
        self,
        contents: list[RemoteFileContent],
        root: Path,
        on_progress: ProgressCallback | None,
        cancel: threading.Event | None,
    ) -> SyncSummary:
        summary = SyncSummary()
        total = len(contents)
        for index, item in enumerate(contents, start=1):
            if cancel is not None and cancel.is_set():
                summary.cancelled = True
                break
            try:
                write_file(root, item.relative_path, item.content)
            except (UnsafePathError, OSError) as e:
                logger.error(f"Failed to write {item.relative_path}: {e}")
                summary.record(item.relative_path, ok=False)
            else:
                summary.record(item.relative_path, ok=True)

            if on_progress:
                on_progress(index, total, item.relative_path.rsplit("/", 1)[-1])
        return summary
