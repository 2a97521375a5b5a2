"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, NoWorkspaceOpenError, NoActiveIdentityError: Precondition errors
- TransferError and subclasses: Single-file transfer failures
- FileRecord: A syncable file under the active workspace root
- RemoteFileDescriptor, WorkspaceDescriptor: Metadata reported by the store
- AllFiles, ByWorkspace, ByFiles: Download selections
- SyncSummary: Result of a batch operation
- Type aliases for callbacks
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Union

logger = logging.getLogger(__name__)

BYTES_PER_MB = 1024 * 1024


class SyncError(Exception):
    """Base exception for sync errors."""


class NoWorkspaceOpenError(SyncError):
    """The operation needs a local workspace root and none is open."""

    def __init__(self, message: str = "No workspace folder open.") -> None:
        super().__init__(message)


class NoActiveIdentityError(SyncError):
    """The operation needs an authenticated user and none is active."""

    def __init__(
        self,
        message: str = "No active user found. Sign in to GitHub or Microsoft first.",
    ) -> None:
        super().__init__(message)


class UnsafePathError(SyncError):
    """A remote relative path would resolve outside the destination root."""


class TransferError(SyncError):
    """Base exception for a failed single-file transfer."""

    kind = "transfer"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class TransferNetworkError(TransferError):
    """The store could not be reached."""

    kind = "network"


class TransferTimeoutError(TransferError):
    """The transfer did not finish within its timeout."""

    kind = "timeout"


class TransferRejectedError(TransferError):
    """The store answered but refused the request.

    The message is the store-provided reason when there is one.
    """

    kind = "serverRejected"


def to_wire_path(path: str | Path) -> str:
    """Normalize a relative path to the forward-slash form used on the wire."""
    return str(path).replace("\\", "/")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a store timestamp, returning None when absent or unparseable."""
    if not value:
        return None
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        logger.debug(f"Unparseable timestamp from store: {value!r}")
        return None


def _size_in_bytes(data: dict[str, Any]) -> int:
    if data.get("size") is not None:
        return int(data["size"])
    if data.get("sizeMB") is not None:
        return int(float(data["sizeMB"]) * BYTES_PER_MB)
    return 0


@dataclass(frozen=True)
class FileRecord:
    """A local file selected for synchronization.

    Attributes:
        absolute_path: Location on disk.
        relative_path: Path relative to the workspace root, forward slashes.
        extension: Lower-cased extension including the dot.
    """

    absolute_path: Path
    relative_path: str
    extension: str

    @classmethod
    def from_path(cls, path: Path, root: Path) -> FileRecord:
        """Build a record for a file under a workspace root.

        Falls back to the bare file name when the path is not under root.
        """
        try:
            relative = to_wire_path(path.relative_to(root))
        except ValueError:
            relative = path.name
        return cls(
            absolute_path=path,
            relative_path=relative or path.name,
            extension=path.suffix.lower(),
        )

    @property
    def name(self) -> str:
        return self.absolute_path.name


@dataclass
class RemoteFileDescriptor:
    """File metadata from the store.

    Used for display and selection only, never for conflict detection.
    """

    relative_path: str
    workspace_name: str | None = None
    size_bytes: int = 0
    last_modified: datetime | None = None
    name: str | None = None

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], workspace_name: str | None = None
    ) -> RemoteFileDescriptor:
        """Create from API response dictionary."""
        return cls(
            relative_path=to_wire_path(data["relativePath"]),
            workspace_name=workspace_name,
            size_bytes=_size_in_bytes(data),
            last_modified=parse_timestamp(data.get("lastModified")),
            name=data.get("name"),
        )

    @property
    def display_name(self) -> str:
        return self.name or self.relative_path.rsplit("/", 1)[-1]


@dataclass
class WorkspaceDescriptor:
    """One remote logical workspace, named after the uploading root folder."""

    name: str
    file_count: int = 0
    total_size_bytes: int = 0
    last_modified: datetime | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkspaceDescriptor:
        """Create from API response dictionary."""
        return cls(
            name=data["name"],
            file_count=int(data.get("fileCount") or 0),
            total_size_bytes=_size_in_bytes(data),
            last_modified=parse_timestamp(data.get("lastModified")),
        )

    def __str__(self) -> str:
        size_mb = self.total_size_bytes / BYTES_PER_MB
        return f"{self.name} ({self.file_count} files, {size_mb:.2f} MB)"


@dataclass
class RemoteFileContent:
    """Content of one remote file as returned by a download."""

    relative_path: str
    content: str | bytes


# === Download selections ===


@dataclass(frozen=True)
class AllFiles:
    """Every file the user owns, across all workspaces."""


@dataclass(frozen=True)
class ByWorkspace:
    """Every file of one remote workspace."""

    workspace_name: str


@dataclass(frozen=True)
class ByFiles:
    """A chosen subset of files from one remote workspace."""

    workspace_name: str
    paths: tuple[str, ...]


Selection = Union[AllFiles, ByWorkspace, ByFiles]


@dataclass
class SyncSummary:
    """Result of a batch upload or download.

    Partial failure is a normal outcome; callers report
    attempted vs. succeeded.
    """

    attempted: int = 0
    succeeded: int = 0
    failed: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def failed_count(self) -> int:
        return self.attempted - self.succeeded

    def record(self, path: str, ok: bool) -> None:
        self.attempted += 1
        if ok:
            self.succeeded += 1
        else:
            self.failed.append(path)


# (index, total, current file name), index is 1-based
ProgressCallback = Callable[[int, int, str], None]
