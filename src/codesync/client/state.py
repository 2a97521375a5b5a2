"""Local state management for the sync client.

This module provides:
- LocalSyncState: SQLite-based store for the session and per-user flags
- SessionRecord: The signed-in user, if any
- UserState: Per-user record holding the full-sync flag

Architecture:
    Per-user state is addressed by email as a primary key rather than by
    string keys built from it, so two users can never share a record.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path

from codesync.core.types import Identity, Provider

logger = logging.getLogger(__name__)


@dataclass
class SessionRecord:
    """The user the tool is signed in as on this device.

    Attributes:
        email: Account email.
        provider: Identity provider name.
        active: False once the user has been signed out but not forgotten.
    """

    email: str
    provider: Provider
    active: bool = True

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> SessionRecord:
        """Create SessionRecord from database row."""
        return cls(
            email=row["email"],
            provider=Provider(row["provider"]),
            active=bool(row["active"]),
        )

    def to_identity(self) -> Identity:
        return Identity(email=self.email, provider=self.provider)


@dataclass
class UserState:
    """Per-user sync state.

    Attributes:
        email: Account email (primary key).
        full_sync_done: Whether a full push or full restore has completed.
    """

    email: str
    full_sync_done: bool = False


class LocalSyncState:
    """SQLite-based local state for the sync client."""

    def __init__(self, db_path: Path | str) -> None:
        """Initialize local state database.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
        """
        self._db_path = str(db_path)
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        # Lock for thread-safe database access
        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            self._db_path,
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row
        if self._db_path != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")

        self._create_tables()

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        self._conn.executescript("""
            -- Single signed-in session for this device
            CREATE TABLE IF NOT EXISTS session (
                id INTEGER PRIMARY KEY CHECK (id = 1),
                email TEXT NOT NULL,
                provider TEXT NOT NULL,
                active INTEGER NOT NULL DEFAULT 1
            );

            -- Per-user flags
            CREATE TABLE IF NOT EXISTS user_state (
                email TEXT PRIMARY KEY,
                full_sync_done INTEGER NOT NULL DEFAULT 0
            );
        """)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    def __enter__(self) -> LocalSyncState:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # === Session ===

    def get_session(self) -> SessionRecord | None:
        """Get the stored session, or None if nobody ever signed in."""
        with self._lock:
            row = self._conn.execute("SELECT * FROM session WHERE id = 1").fetchone()
        if row is None:
            return None
        return SessionRecord.from_row(row)

    def set_session(self, identity: Identity, active: bool = True) -> SessionRecord:
        """Store the signed-in user (upsert)."""
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO session (id, email, provider, active) "
                "VALUES (1, ?, ?, ?)",
                (identity.email, identity.provider.value, int(active)),
            )
        return SessionRecord(email=identity.email, provider=identity.provider, active=active)

    def clear_session(self) -> None:
        """Forget the signed-in user."""
        with self._lock:
            self._conn.execute("DELETE FROM session")

    def get_active_identity(self) -> Identity | None:
        """Get the identity of the active session, if any."""
        session = self.get_session()
        if session is None or not session.active:
            return None
        return session.to_identity()

    # === Per-user state ===

    def get_user_state(self, email: str) -> UserState:
        """Get a user's state; unknown users start with the flag unset."""
        with self._lock:
            row = self._conn.execute(
                "SELECT * FROM user_state WHERE email = ?",
                (email,),
            ).fetchone()
        if row is None:
            return UserState(email=email)
        return UserState(email=row["email"], full_sync_done=bool(row["full_sync_done"]))

    def is_full_sync_done(self, email: str) -> bool:
        return self.get_user_state(email).full_sync_done

    def set_full_sync_done(self, email: str, done: bool = True) -> None:
        """Set or clear the full-sync flag for a user."""
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO user_state (email, full_sync_done) VALUES (?, ?)",
                (email, int(done)),
            )
        logger.debug(f"Full-sync flag for {email} set to {done}")

    def clear_user(self, email: str) -> None:
        """Remove every record held for a user."""
        with self._lock:
            self._conn.execute("DELETE FROM user_state WHERE email = ?", (email,))
            self._conn.execute("DELETE FROM session WHERE email = ?", (email,))
