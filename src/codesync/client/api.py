"""HTTP client for the CodeSync file store.

This module provides:
- StoreClient: HTTP client for communicating with the store
- Single-file upload and download
- Workspace and file listings, bulk workspace download
"""

from __future__ import annotations

import base64
import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from urllib.parse import quote

import httpx

from codesync.client.sync.types import (
    FileRecord,
    RemoteFileContent,
    RemoteFileDescriptor,
    TransferError,
    TransferNetworkError,
    TransferRejectedError,
    TransferTimeoutError,
    WorkspaceDescriptor,
    to_wire_path,
)
from codesync.core.config import ServerConfig
from codesync.core.types import Identity

logger = logging.getLogger(__name__)

__all__ = [
    "StoreClient",
    "TransferError",
    "TransferNetworkError",
    "TransferRejectedError",
    "TransferTimeoutError",
]


def _segment(value: str) -> str:
    """Percent-encode a single URL path segment."""
    return quote(value, safe="")


def _decode_content(item: dict[str, Any]) -> str | bytes:
    content = item.get("content")
    if content is None:
        return ""
    if item.get("encoding") == "base64":
        return base64.b64decode(content)
    return str(content)


class StoreClient:
    """HTTP client for the CodeSync file store.

    Every call is a single transfer with its own timeout. Nothing is
    retried here; a failed transfer is only retried by a later trigger.
    """

    def __init__(
        self,
        config: ServerConfig,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the store client.

        Args:
            config: Server configuration (URL and timeouts).
            transport: Optional custom transport (used by tests).
        """
        self._config = config
        self._client = httpx.Client(
            base_url=config.server_url,
            timeout=config.list_timeout,
            transport=transport,
        )

    @property
    def config(self) -> ServerConfig:
        return self._config

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> StoreClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    @contextmanager
    def _transfer(self, what: str) -> Iterator[None]:
        """Translate httpx failures into the transfer error taxonomy."""
        try:
            yield
        except httpx.TimeoutException as e:
            raise TransferTimeoutError(f"{what} timed out: {e}") from e
        except httpx.RequestError as e:
            raise TransferNetworkError(f"{what} failed: {e}") from e

    def _handle_response(self, response: httpx.Response) -> dict[str, Any]:
        """Check the HTTP status and decode the JSON body."""
        if response.status_code >= 400:
            raise TransferRejectedError(
                self._error_detail(response), response.status_code
            )
        try:
            data = response.json()
        except ValueError as e:
            raise TransferRejectedError(
                "Store returned an invalid response", response.status_code
            ) from e
        if not isinstance(data, dict):
            raise TransferRejectedError(
                "Store returned an unexpected response", response.status_code
            )
        return data

    @staticmethod
    def _error_detail(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return f"HTTP {response.status_code}"
        if isinstance(data, dict):
            return str(data.get("error") or data.get("detail") or f"HTTP {response.status_code}")
        return f"HTTP {response.status_code}"

    # === Upload ===

    def upload(
        self,
        record: FileRecord,
        identity: Identity,
        workspace_name: str,
    ) -> dict[str, Any]:
        """Upload one local file to the store.

        The file is streamed, so large files are not truncated.

        Args:
            record: File to upload.
            identity: Owner of the file.
            workspace_name: Name of the local workspace root folder.

        Returns:
            The store's acknowledgment.

        Raises:
            TransferError: On network failure, timeout or rejection.
        """
        relative_path = to_wire_path(record.relative_path) or record.name
        with self._transfer(f"Upload of {relative_path}"):
            with open(record.absolute_path, "rb") as fh:
                response = self._client.post(
                    "/upload",
                    files={"file": (record.name, fh, "application/octet-stream")},
                    data={
                        "userEmail": identity.email,
                        "workspaceName": workspace_name,
                        "relativePath": relative_path,
                    },
                    timeout=self._config.upload_timeout,
                )
        data = self._handle_response(response)
        if not data.get("ok"):
            raise TransferRejectedError(
                str(data.get("error") or "Upload failed"), response.status_code
            )
        logger.debug(f"Uploaded {relative_path}")
        return data

    # === Download ===

    def download(self, identity: Identity, relative_path: str) -> str | bytes:
        """Fetch the content of one remote file.

        Args:
            identity: Owner of the file.
            relative_path: Path as stored remotely.

        Returns:
            Text content, or bytes when the store sends a base64 envelope.

        Raises:
            TransferError: On network failure, timeout or rejection.
        """
        with self._transfer(f"Download of {relative_path}"):
            response = self._client.post(
                "/download",
                json={"userEmail": identity.email, "filePath": relative_path},
                timeout=self._config.download_timeout,
            )
        data = self._handle_response(response)
        if "content" not in data:
            raise TransferRejectedError(
                str(data.get("error") or f"No content returned for {relative_path}"),
                response.status_code,
            )
        return _decode_content(data)

    def download_workspace_files(
        self,
        identity: Identity,
        workspace_name: str,
        selected_files: list[str] | None = None,
    ) -> list[RemoteFileContent]:
        """Fetch several files of one workspace in a single request.

        Args:
            identity: Owner of the workspace.
            workspace_name: Remote workspace name.
            selected_files: Paths to fetch; None fetches everything.

        Returns:
            Materializable contents, one per returned file.
        """
        body: dict[str, Any] = {
            "userEmail": identity.email,
            "workspaceName": workspace_name,
            "downloadAll": selected_files is None,
        }
        if selected_files is not None:
            body["selectedFiles"] = list(selected_files)

        with self._transfer(f"Download of workspace {workspace_name}"):
            response = self._client.post("/download-workspace-files", json=body)
        data = self._handle_response(response)
        return [
            RemoteFileContent(
                relative_path=to_wire_path(item["filePath"]),
                content=_decode_content(item),
            )
            for item in data.get("files") or []
        ]

    # === Listings ===

    def list_files(self, identity: Identity) -> list[RemoteFileDescriptor]:
        """List every file of a user across all workspaces (flat listing)."""
        with self._transfer("File listing"):
            response = self._client.get(f"/files/{_segment(identity.email)}")
        data = self._handle_response(response)
        return [RemoteFileDescriptor.from_dict(f) for f in data.get("files") or []]

    def count_files(self, identity: Identity) -> int:
        """Get the number of files a user has in the store."""
        with self._transfer("File count"):
            response = self._client.get(f"/files/{_segment(identity.email)}")
        data = self._handle_response(response)
        return int(data.get("count") or 0)

    def list_workspaces(self, identity: Identity) -> list[WorkspaceDescriptor]:
        """List the remote workspaces a user owns."""
        with self._transfer("Workspace listing"):
            response = self._client.get(f"/workspaces/{_segment(identity.email)}")
        data = self._handle_response(response)
        return [WorkspaceDescriptor.from_dict(w) for w in data.get("workspaces") or []]

    def list_workspace_files(
        self, identity: Identity, workspace_name: str
    ) -> list[RemoteFileDescriptor]:
        """List the files of one remote workspace."""
        with self._transfer(f"Listing of workspace {workspace_name}"):
            response = self._client.get(
                f"/workspace/{_segment(identity.email)}/{_segment(workspace_name)}"
            )
        data = self._handle_response(response)
        return [
            RemoteFileDescriptor.from_dict(f, workspace_name=workspace_name)
            for f in data.get("files") or []
        ]
