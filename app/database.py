"""SQLite-backed persistence for users."""
from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import anyio

from .models import User

logger = logging.getLogger("users.database")

_SQLITE_URL_PREFIX = "sqlite:///"


class StoreError(RuntimeError):
    """Raised when the relational store cannot run a statement.

    ``kind`` is one of ``"connection"``, ``"statement"`` or ``"constraint"``.
    """

    def __init__(self, message: str, *, kind: str = "statement") -> None:
        super().__init__(message)
        self.kind = kind


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the store from a connection string.

    Accepts a plain filesystem path or a ``sqlite:///`` URL. Empty values fall
    back to ``data/users.sqlite3`` under the project root.
    """

    value = (env_value or "").strip()
    if "://" in value:
        if not value.startswith(_SQLITE_URL_PREFIX):
            raise StoreError(f"Unsupported store URL '{value}'", kind="connection")
        value = value[len(_SQLITE_URL_PREFIX):]
    if value:
        return Path(value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "users.sqlite3").resolve(strict=False)


class Database:
    """Thin async wrapper around SQLite for the ``users`` table."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(self._path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StoreError(
                f"Unable to open store at {self._path}: {exc}", kind="connection"
            ) from exc
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the required table if it does not already exist."""

        conn = self._connect()
        try:
            with conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        name TEXT NOT NULL,
                        email TEXT NOT NULL UNIQUE,
                        created_at TEXT NOT NULL
                            DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
                    );

                    CREATE INDEX IF NOT EXISTS idx_users_name ON users(name);
                    """
                )
        except sqlite3.Error as exc:
            raise StoreError(
                f"Unable to initialise store at {self._path}: {exc}", kind="connection"
            ) from exc
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Statement execution
    # ------------------------------------------------------------------
    def _execute(self, statement: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        conn = self._connect()
        try:
            with conn:
                rows = conn.execute(statement, tuple(params)).fetchall()
        except sqlite3.IntegrityError as exc:
            logger.warning("Store rejected statement: %s", exc)
            raise StoreError(str(exc), kind="constraint") from exc
        except sqlite3.Error as exc:
            logger.warning("Store statement failed: %s", exc)
            raise StoreError(str(exc), kind="statement") from exc
        finally:
            conn.close()
        return [dict(row) for row in rows]

    async def query(self, statement: str, params: Sequence[Any] = ()) -> List[Dict[str, Any]]:
        """Run one parameterized statement and return its rows as mappings."""

        return await anyio.to_thread.run_sync(self._execute, statement, params)

    async def ping(self) -> None:
        await self.query("SELECT 1")

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------
    async def list_users(self) -> List[User]:
        rows = await self.query("SELECT id, name, email, created_at FROM users ORDER BY id")
        return [self._row_to_user(row) for row in rows]

    async def find_user_by_name(self, name: str) -> Optional[User]:
        """Return the user with the given name, preferring the lowest id."""

        rows = await self.query(
            "SELECT id, name, email, created_at FROM users WHERE name = ? ORDER BY id LIMIT 1",
            (name,),
        )
        if not rows:
            return None
        return self._row_to_user(rows[0])

    async def find_email_by_email(self, email: str) -> Optional[str]:
        """Confirm ``email`` exists in the store, returning the stored value."""

        rows = await self.query("SELECT email FROM users WHERE email = ?", (email,))
        if not rows:
            return None
        return str(rows[0]["email"])

    async def insert_user(self, name: str, email: str) -> User:
        rows = await self.query(
            "INSERT INTO users (name, email) VALUES (?, ?) "
            "RETURNING id, name, email, created_at",
            (name, email),
        )
        if not rows:
            raise StoreError("Insert did not return the new row")
        user = self._row_to_user(rows[0])
        logger.info("Created user #%s", user.id)
        return user

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _row_to_user(self, row: Dict[str, Any]) -> User:
        return User(
            id=int(row["id"]),
            name=str(row["name"]),
            email=str(row["email"]),
            created_at=str(row["created_at"]),
        )


__all__ = ["Database", "StoreError", "resolve_database_path"]
