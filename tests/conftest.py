"""Shared pytest fixtures."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from codesync.client.state import LocalSyncState
from codesync.core.types import Identity, Provider
from tests.fakes import FakePrompter


@pytest.fixture
def identity() -> Identity:
    """A signed-in user."""
    return Identity(email="dev@example.com", provider=Provider.GITHUB)


@pytest.fixture
def state(tmp_path: Path) -> Generator[LocalSyncState, None, None]:
    """A LocalSyncState backed by a temporary database."""
    s = LocalSyncState(tmp_path / "state" / "state.db")
    yield s
    s.close()


@pytest.fixture
def prompter() -> FakePrompter:
    """A scripted UI with no answers queued."""
    return FakePrompter()


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """An empty workspace root named 'myproject'."""
    root = tmp_path / "myproject"
    root.mkdir()
    return root

