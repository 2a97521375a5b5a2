"""Tests for the CodeSync store client."""

import base64
import json
from datetime import datetime, timezone
from pathlib import Path

import httpx
import pytest

from codesync.client.api import (
    StoreClient,
    TransferNetworkError,
    TransferRejectedError,
    TransferTimeoutError,
)
from codesync.client.sync.types import FileRecord, RemoteFileDescriptor, WorkspaceDescriptor
from codesync.core.config import ServerConfig
from codesync.core.types import Identity
from tests.fakes import make_file


def make_client(server_url: str = "http://test") -> StoreClient:
    """Create a StoreClient for testing."""
    return StoreClient(ServerConfig(server_url=server_url))


class TestDescriptors:
    """Tests for listing dataclasses."""

    def test_file_descriptor_from_dict(self) -> None:
        """Should parse a file entry from a listing."""
        data = {
            "relativePath": "src/app.py",
            "name": "app.py",
            "size": 2048,
            "lastModified": "2025-01-02T15:30:00Z",
        }

        descriptor = RemoteFileDescriptor.from_dict(data, workspace_name="proj")

        assert descriptor.relative_path == "src/app.py"
        assert descriptor.workspace_name == "proj"
        assert descriptor.size_bytes == 2048
        assert descriptor.last_modified == datetime(2025, 1, 2, 15, 30, tzinfo=timezone.utc)
        assert descriptor.display_name == "app.py"

    def test_file_descriptor_size_in_mb(self) -> None:
        """Should convert sizeMB to bytes when size is absent."""
        descriptor = RemoteFileDescriptor.from_dict({"relativePath": "a.py", "sizeMB": 2})

        assert descriptor.size_bytes == 2 * 1024 * 1024
        assert descriptor.display_name == "a.py"

    def test_file_descriptor_bad_timestamp(self) -> None:
        """An unparsable timestamp is ignored."""
        descriptor = RemoteFileDescriptor.from_dict(
            {"relativePath": "a.py", "lastModified": "yesterday"}
        )

        assert descriptor.last_modified is None

    def test_workspace_descriptor(self) -> None:
        """Should parse a workspace entry and render it for pickers."""
        workspace = WorkspaceDescriptor.from_dict(
            {"name": "proj", "fileCount": 3, "sizeMB": 1.5}
        )

        assert workspace.name == "proj"
        assert workspace.file_count == 3
        assert str(workspace) == "proj (3 files, 1.50 MB)"


class TestStoreClient:
    """Tests for StoreClient."""

    def test_upload(self, httpx_mock, tmp_path: Path, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should POST the file as multipart with owner and path fields."""
        captured: list[httpx.Request] = []

        def handle(request: httpx.Request) -> httpx.Response:
            request.read()
            captured.append(request)
            return httpx.Response(200, json={"ok": True, "path": "p"})

        httpx_mock.add_callback(handle, url="http://test/upload", method="POST")
        path = make_file(tmp_path / "proj", "src/main.py", "print('hi')\n")
        record = FileRecord.from_path(path, tmp_path / "proj")

        with make_client() as client:
            ack = client.upload(record, identity, "proj")

        assert ack["ok"] is True
        [request] = captured
        body = request.content
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="userEmail"' in body
        assert b"dev@example.com" in body
        assert b'name="workspaceName"' in body
        assert b'name="relativePath"' in body
        assert b"src/main.py" in body
        assert b'name="file"; filename="main.py"' in body
        assert b"print('hi')" in body

    def test_upload_rejected_by_ok_false(self, httpx_mock, tmp_path: Path, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """An ok=false acknowledgment is a rejection carrying the reason."""
        httpx_mock.add_response(
            url="http://test/upload", json={"ok": False, "error": "quota exceeded"}
        )
        path = make_file(tmp_path, "a.py")

        with make_client() as client:
            with pytest.raises(TransferRejectedError, match="quota exceeded") as exc_info:
                client.upload(FileRecord.from_path(path, tmp_path), identity, "ws")

        assert exc_info.value.kind == "serverRejected"

    def test_upload_server_error(self, httpx_mock, tmp_path: Path, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """HTTP errors raise TransferRejectedError with the status code."""
        httpx_mock.add_response(
            url="http://test/upload", status_code=500, json={"error": "disk full"}
        )
        path = make_file(tmp_path, "a.py")

        with make_client() as client:
            with pytest.raises(TransferRejectedError, match="disk full") as exc_info:
                client.upload(FileRecord.from_path(path, tmp_path), identity, "ws")

        assert exc_info.value.status_code == 500

    def test_upload_timeout(self, httpx_mock, tmp_path: Path, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Timeouts map to TransferTimeoutError."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))
        path = make_file(tmp_path, "a.py")

        with make_client() as client:
            with pytest.raises(TransferTimeoutError) as exc_info:
                client.upload(FileRecord.from_path(path, tmp_path), identity, "ws")

        assert exc_info.value.kind == "timeout"

    def test_network_error(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Connection failures map to TransferNetworkError."""
        httpx_mock.add_exception(httpx.ConnectError("connection refused"))

        with make_client() as client:
            with pytest.raises(TransferNetworkError) as exc_info:
                client.list_files(identity)

        assert exc_info.value.kind == "network"

    def test_download_text(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should POST owner and path and return the text content."""
        httpx_mock.add_response(
            url="http://test/download",
            method="POST",
            match_json={"userEmail": "dev@example.com", "filePath": "src/a.py"},
            json={"content": "x = 1\n"},
        )

        with make_client() as client:
            assert client.download(identity, "src/a.py") == "x = 1\n"

    def test_download_base64(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """A base64 envelope is decoded to bytes."""
        raw = b"\x00\x01binary\xff"
        httpx_mock.add_response(
            url="http://test/download",
            json={"content": base64.b64encode(raw).decode(), "encoding": "base64"},
        )

        with make_client() as client:
            assert client.download(identity, "data.json") == raw

    def test_download_missing_content(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """A body without content is a rejection."""
        httpx_mock.add_response(url="http://test/download", json={"error": "not found"})

        with make_client() as client:
            with pytest.raises(TransferRejectedError, match="not found"):
                client.download(identity, "gone.py")

    def test_download_not_found(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """A 404 is a rejection."""
        httpx_mock.add_response(url="http://test/download", status_code=404)

        with make_client() as client:
            with pytest.raises(TransferRejectedError) as exc_info:
                client.download(identity, "gone.py")

        assert exc_info.value.status_code == 404

    def test_invalid_json(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """A non-JSON body is a rejection."""
        httpx_mock.add_response(url="http://test/download", text="<html>oops</html>")

        with make_client() as client:
            with pytest.raises(TransferRejectedError):
                client.download(identity, "a.py")

    def test_list_files(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should GET the flat listing with the email percent-encoded."""
        httpx_mock.add_response(
            url="http://test/files/dev%40example.com",
            method="GET",
            json={
                "count": 2,
                "files": [
                    {"relativePath": "a.py", "size": 10},
                    {"relativePath": "src\\b.py", "size": 20},
                ],
            },
        )

        with make_client() as client:
            files = client.list_files(identity)

        assert [f.relative_path for f in files] == ["a.py", "src/b.py"]
        assert [f.size_bytes for f in files] == [10, 20]

    def test_count_files(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should return the count from the flat listing."""
        httpx_mock.add_response(
            url="http://test/files/dev%40example.com", json={"count": 7, "files": []}
        )

        with make_client() as client:
            assert client.count_files(identity) == 7

    def test_list_workspaces(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should parse the workspace listing."""
        httpx_mock.add_response(
            url="http://test/workspaces/dev%40example.com",
            json={
                "workspaces": [
                    {"name": "proj", "fileCount": 2, "sizeMB": 0.5},
                    {"name": "notes", "fileCount": 1},
                ]
            },
        )

        with make_client() as client:
            workspaces = client.list_workspaces(identity)

        assert [w.name for w in workspaces] == ["proj", "notes"]
        assert workspaces[0].file_count == 2

    def test_list_workspace_files(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should encode the workspace name as a path segment."""
        httpx_mock.add_response(
            url="http://test/workspace/dev%40example.com/my%20proj",
            json={"files": [{"relativePath": "a.py", "name": "a.py", "size": 1}]},
        )

        with make_client() as client:
            files = client.list_workspace_files(identity, "my proj")

        assert len(files) == 1
        assert files[0].workspace_name == "my proj"

    def test_download_workspace_files_all(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should ask for the whole workspace when nothing is selected."""
        httpx_mock.add_response(
            url="http://test/download-workspace-files",
            method="POST",
            match_json={
                "userEmail": "dev@example.com",
                "workspaceName": "proj",
                "downloadAll": True,
            },
            json={
                "files": [
                    {"filePath": "a.py", "content": "a"},
                    {"filePath": "img/logo.svg", "content": base64.b64encode(b"<svg/>").decode(), "encoding": "base64"},
                ]
            },
        )

        with make_client() as client:
            contents = client.download_workspace_files(identity, "proj")

        assert [c.relative_path for c in contents] == ["a.py", "img/logo.svg"]
        assert contents[0].content == "a"
        assert contents[1].content == b"<svg/>"

    def test_download_workspace_files_selected(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should send the selected paths."""
        httpx_mock.add_response(
            url="http://test/download-workspace-files",
            json={"files": [{"filePath": "a.py", "content": "a"}]},
        )

        with make_client() as client:
            client.download_workspace_files(identity, "proj", ["a.py", "b.py"])

        body = json.loads(httpx_mock.get_request().read())
        assert body == {
            "userEmail": "dev@example.com",
            "workspaceName": "proj",
            "downloadAll": False,
            "selectedFiles": ["a.py", "b.py"],
        }

    def test_context_manager(self) -> None:
        """Should close client on context exit."""
        with make_client() as client:
            assert client.config.server_url == "http://test"

    def test_server_url_trailing_slash(self, httpx_mock, identity: Identity) -> None:  # type: ignore[no-untyped-def]
        """Should handle a trailing slash in the server URL."""
        httpx_mock.add_response(
            url="http://test/files/dev%40example.com", json={"count": 0, "files": []}
        )

        with make_client("http://test/") as client:
            assert client.list_files(identity) == []
