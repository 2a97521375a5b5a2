"""Workspace synchronization engine.

Architecture:
    save event -> SaveDebouncer -> StoreClient.upload
    manual sync -> enumerate_workspace -> FullSync -> StoreClient.upload (N)
    activation  -> RestoreOrchestrator -> FullSync | DownloadOrchestrator

Components:
- **FileClassifier**: Extension allow-list and directory deny-list
- **enumerate_workspace**: Eager depth-first walk of the workspace root
- **SaveDebouncer**: Trailing-edge debounce of save events
- **SaveWatcher**: watchdog-based save detection for watch mode
- **FullSync**: Bulk upload tolerant of per-file failures
- **DownloadOrchestrator**: Resolves and materializes a download Selection
- **RestoreOrchestrator**: First-activation push/restore decision

The store client itself lives in codesync.client.api.
"""

from codesync.client.sync.debounce import SaveDebouncer, SaveWatcher
from codesync.client.sync.download import (
    DownloadOrchestrator,
    resolve_destination,
    write_file,
)
from codesync.client.sync.ignore import (
    EXCLUDE_DIRS,
    INCLUDE_EXTENSIONS,
    FileClassifier,
    is_syncable,
    load_classifier,
)
from codesync.client.sync.restore import RestoreOrchestrator, RestoreOutcome
from codesync.client.sync.scanner import enumerate_workspace, is_workspace_empty
from codesync.client.sync.types import (
    AllFiles,
    ByFiles,
    ByWorkspace,
    FileRecord,
    NoActiveIdentityError,
    NoWorkspaceOpenError,
    ProgressCallback,
    RemoteFileContent,
    RemoteFileDescriptor,
    Selection,
    SyncError,
    SyncSummary,
    TransferError,
    TransferNetworkError,
    TransferRejectedError,
    TransferTimeoutError,
    UnsafePathError,
    WorkspaceDescriptor,
)
from codesync.client.sync.upload import FullSync

__all__ = [
    # Classification and enumeration
    "EXCLUDE_DIRS",
    "INCLUDE_EXTENSIONS",
    "FileClassifier",
    "enumerate_workspace",
    "is_syncable",
    "is_workspace_empty",
    "load_classifier",
    # Types
    "AllFiles",
    "ByFiles",
    "ByWorkspace",
    "FileRecord",
    "ProgressCallback",
    "RemoteFileContent",
    "RemoteFileDescriptor",
    "Selection",
    "SyncSummary",
    "WorkspaceDescriptor",
    # Errors
    "NoActiveIdentityError",
    "NoWorkspaceOpenError",
    "SyncError",
    "TransferError",
    "TransferNetworkError",
    "TransferRejectedError",
    "TransferTimeoutError",
    "UnsafePathError",
    # Orchestrators
    "DownloadOrchestrator",
    "FullSync",
    "RestoreOrchestrator",
    "RestoreOutcome",
    "resolve_destination",
    "write_file",
    # Save trigger
    "SaveDebouncer",
    "SaveWatcher",
]
