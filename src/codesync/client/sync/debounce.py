"""Debounced upload on save.

This module provides:
- SaveDebouncer: Coalesces rapid save events into single uploads
- SaveWatcher: Watches a workspace with watchdog and reports saved files

By default one timer is shared by every file: a burst of saves across
files A, B and C restarts the same timer and only C is uploaded once
the burst goes quiet. With per_file=True each relative path gets its
own timer, so every file in a burst is uploaded.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING

from watchdog.events import (
    FileCreatedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from codesync.client.sync.types import SyncError

if TYPE_CHECKING:
    from watchdog.observers.api import BaseObserver

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_S = 0.3

SYNCED_STATUS = "Synced"
FAILED_STATUS = "Sync failed"

_SHARED_KEY = "*"


class SaveDebouncer:
    """Trailing-edge debounce for save events.

    Failures of a debounced upload are reported through on_status and
    logged; they are never retried here.
    """

    def __init__(
        self,
        upload: Callable[[Path], object],
        delay: float = DEFAULT_DEBOUNCE_S,
        per_file: bool = False,
        on_status: Callable[[str], None] | None = None,
    ) -> None:
        """Initialize the debouncer.

        Args:
            upload: Called with the saved file's path when its timer fires.
            delay: Quiet period in seconds before uploading.
            per_file: Keep one timer per path instead of one shared timer.
            on_status: Optional transient status callback.
        """
        self._upload = upload
        self._delay = delay
        self._per_file = per_file
        self._on_status = on_status

        self._lock = threading.Lock()
        self._timers: dict[str, threading.Timer] = {}

    @property
    def pending_count(self) -> int:
        """Number of timers waiting to fire."""
        with self._lock:
            return len(self._timers)

    def notify_saved(self, path: Path) -> None:
        """Record a save event, restarting the relevant timer."""
        path = Path(path)
        key = str(path) if self._per_file else _SHARED_KEY

        with self._lock:
            previous = self._timers.pop(key, None)
            if previous is not None:
                previous.cancel()

            timer = threading.Timer(self._delay, self._fire, args=(key, path))
            timer.daemon = True
            self._timers[key] = timer
            timer.start()

    def _fire(self, key: str, path: Path) -> None:
        with self._lock:
            timer = self._timers.get(key)
            # A newer save replaced this timer after it started firing
            if timer is not threading.current_thread():
                return
            del self._timers[key]

        self._upload_now(path)

    def _upload_now(self, path: Path) -> None:
        try:
            self._upload(path)
        except (SyncError, OSError) as e:
            logger.error(f"Auto-sync failed for {path.name}: {e}")
            self._report(FAILED_STATUS)
            return

        logger.info(f"Auto-synced: {path.name}")
        self._report(SYNCED_STATUS)

    def _report(self, status: str) -> None:
        if self._on_status:
            self._on_status(status)

    def flush(self) -> None:
        """Fire every pending timer now, in the calling thread."""
        with self._lock:
            pending = list(self._timers.items())
            self._timers.clear()
        for _, timer in pending:
            timer.cancel()
            self._upload_now(timer.args[1])

    def stop(self) -> None:
        """Cancel every pending timer without uploading."""
        with self._lock:
            for timer in self._timers.values():
                timer.cancel()
            self._timers.clear()


class _SaveEventHandler(FileSystemEventHandler):
    """Forwards file writes under the workspace to a callback."""

    def __init__(self, on_saved: Callable[[Path], None]) -> None:
        super().__init__()
        self._on_saved = on_saved

    def _forward(self, raw_path: str | bytes) -> None:
        if isinstance(raw_path, bytes):
            raw_path = raw_path.decode("utf-8", errors="replace")
        self._on_saved(Path(raw_path))

    def on_created(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileCreatedEvent):
            self._forward(event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if isinstance(event, FileModifiedEvent):
            self._forward(event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        # Editors often save by writing a temp file and renaming it
        if isinstance(event, FileMovedEvent):
            self._forward(event.dest_path)


class SaveWatcher:
    """Reports files saved under a workspace root.

    Only writes are reported; deletions and directory events are ignored.
    """

    def __init__(self, root: Path, on_saved: Callable[[Path], None]) -> None:
        """Initialize the watcher.

        Args:
            root: Workspace root to watch recursively.
            on_saved: Called with the absolute path of each saved file.
        """
        self._root = Path(root).resolve()
        if not self._root.is_dir():
            raise ValueError(f"Watch path must be a directory: {root}")

        self._handler = _SaveEventHandler(on_saved)
        self._observer: BaseObserver = Observer()
        self._running = False

    @property
    def root(self) -> Path:
        return self._root

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Start watching for saves."""
        if self._running:
            return

        self._observer.schedule(self._handler, str(self._root), recursive=True)
        self._observer.start()
        self._running = True

    def stop(self) -> None:
        """Stop watching for saves."""
        if not self._running:
            return

        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._running = False

    def __enter__(self) -> SaveWatcher:
        """Context manager entry."""
        self.start()
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.stop()
