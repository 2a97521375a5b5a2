"""Shared configuration classes for codesync.

This module defines the connection settings used by the store client
and the timing values used by the sync engine.
"""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_SERVER_URL = "http://localhost:4000"


@dataclass
class ServerConfig:
    """Configuration for connecting to the remote file store.

    Attributes:
        server_url: Base URL of the store (e.g., "http://localhost:4000").
        upload_timeout: Timeout for a single upload in seconds.
        download_timeout: Timeout for a single-file download in seconds.
        list_timeout: Timeout for listings and bulk downloads in seconds.
        debounce_delay: Quiet period after a save before uploading, in seconds.
    """

    server_url: str = DEFAULT_SERVER_URL
    upload_timeout: float = 30.0
    download_timeout: float = 10.0
    list_timeout: float = 15.0
    debounce_delay: float = 0.3

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")
