"""
Record store: the persistent `users` table and its raw CRUD primitives.

Owns the single connection, enforces the schema (auto-incrementing id, unique
email, required name, defaulted timestamp) and re-classifies SQLite failures
into the registry error taxonomy. Every mutating call is committed before it
returns, so a following `list_all()` always reflects it.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Generator, List, Optional

import aiosqlite

from user_registry.domain.errors import (
    DuplicateEmail,
    NotFound,
    StoreError,
    StoreUnavailable,
    ValidationError,
)
from user_registry.domain.models import Record, format_timestamp, utc_now, validate_draft
from user_registry.infrastructure.db_factory import open_connection
from user_registry.utils.logging import get_logger

log = get_logger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    created_at TEXT NOT NULL DEFAULT (
        strftime('%Y-%m-%dT%H:%M:%S', 'now') || substr(strftime('%f', 'now'), 3) || '000Z'
    )
);
CREATE INDEX IF NOT EXISTS idx_users_created_at ON users (created_at);
"""

_COLUMNS = "id, name, email, created_at"
_NEWEST_FIRST = "ORDER BY created_at DESC, id DESC"
_DUPLICATE_EMAIL_MARKER = "UNIQUE constraint failed: users.email"
# `PRAGMA user_version` value recorded once the seed pass has run.
_SEEDED_VERSION = 1


def _casefold(value: Optional[str]) -> Optional[str]:
    return value.casefold() if value is not None else None


@contextmanager
def _translate_errors(operation: str, email: Optional[str] = None) -> Generator[None, None, None]:
    """Map sqlite3 exceptions raised inside the block onto registry errors."""
    try:
        yield
    except sqlite3.IntegrityError as exc:
        if _DUPLICATE_EMAIL_MARKER in str(exc):
            raise DuplicateEmail(email or "") from exc
        raise ValidationError(f"{operation} rejected: {exc}") from exc
    except sqlite3.Error as exc:
        raise StoreError(f"{operation} failed: {exc}") from exc


class RecordStore:
    """
    Async CRUD over the `users` table on one aiosqlite connection.

    Construct it explicitly and hand it to whoever needs it; there is no
    module-level handle. Usable as an async context manager:

        async with RecordStore(path) as store:
            await store.insert("Anna", "ann@x.com")
    """

    def __init__(self, db_path: Path | str, journal_mode: str = "WAL") -> None:
        self.db_path = db_path
        self.journal_mode = journal_mode
        self._conn: Optional[aiosqlite.Connection] = None

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def _connection(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreUnavailable("Record store is not open; call initialize() first")
        return self._conn

    async def initialize(self) -> None:
        """
        Open the database and ensure the schema exists. Safe to call repeatedly.

        Raises
        ------
        StoreUnavailable
            If the medium cannot be opened or the schema cannot be created.
        """
        if self._conn is not None:
            return
        conn = await open_connection(self.db_path, self.journal_mode)
        try:
            await conn.create_function("casefold", 1, _casefold, deterministic=True)
            await conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            await conn.close()
            raise StoreUnavailable(f"Cannot create schema in {self.db_path}: {exc}") from exc
        self._conn = conn
        log.info("Record store ready", extra={"db_path": str(self.db_path)})

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await conn.close()
        log.debug("Record store closed", extra={"db_path": str(self.db_path)})

    async def __aenter__(self) -> "RecordStore":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def count(self) -> int:
        conn = self._connection
        with _translate_errors("count"):
            async with conn.execute("SELECT COUNT(*) FROM users") as cursor:
                row = await cursor.fetchone()
        return int(row[0])

    async def is_seeded(self) -> bool:
        """Whether a seed pass has ever completed against this database file."""
        conn = self._connection
        with _translate_errors("is_seeded"):
            async with conn.execute("PRAGMA user_version") as cursor:
                row = await cursor.fetchone()
        return int(row[0]) >= _SEEDED_VERSION

    async def mark_seeded(self) -> None:
        """Persist that seeding has run, so an emptied store is not re-seeded."""
        conn = self._connection
        with _translate_errors("mark_seeded"):
            cursor = await conn.execute(f"PRAGMA user_version = {_SEEDED_VERSION}")
            await cursor.close()

    async def insert(
        self,
        name: str,
        email: str,
        created_at: datetime | str | None = None,
    ) -> Record:
        """
        Insert one record and return it with its assigned id.

        `created_at` defaults to the current UTC time. Raises `ValidationError`
        for empty/malformed input and `DuplicateEmail` if the email is taken.
        """
        draft = validate_draft(name, email, created_at)
        conn = self._connection
        created = draft.created_at or utc_now()
        with _translate_errors("insert", draft.email):
            cursor = await conn.execute(
                "INSERT INTO users (name, email, created_at) VALUES (?, ?, ?)",
                (draft.name, draft.email, format_timestamp(created)),
            )
            record_id = cursor.lastrowid
            await cursor.close()
        log.debug("Inserted user", extra={"record_id": record_id, "email": draft.email})
        return Record(id=record_id, name=draft.name, email=draft.email, created_at=created)

    async def update(self, record_id: int, name: str, email: str) -> Record:
        """
        Replace name and email of an existing record; id and created_at stay.

        Raises `ValidationError`, `NotFound` if the id is absent, or
        `DuplicateEmail` if the email belongs to a different record.
        """
        draft = validate_draft(name, email)
        conn = self._connection
        with _translate_errors("update", draft.email):
            cursor = await conn.execute(
                "UPDATE users SET name = ?, email = ? WHERE id = ?",
                (draft.name, draft.email, record_id),
            )
            changed = cursor.rowcount
            await cursor.close()
        if changed == 0:
            raise NotFound(record_id)
        log.debug("Updated user", extra={"record_id": record_id})
        return await self.get(record_id)

    async def delete(self, record_id: int) -> bool:
        """Remove one record. Deleting an absent id is a no-op returning False."""
        conn = self._connection
        with _translate_errors("delete"):
            cursor = await conn.execute("DELETE FROM users WHERE id = ?", (record_id,))
            removed = cursor.rowcount
            await cursor.close()
        log.debug("Deleted user", extra={"record_id": record_id, "removed": removed})
        return removed > 0

    async def delete_all(self) -> int:
        """Remove every record and return how many were removed."""
        conn = self._connection
        with _translate_errors("delete_all"):
            cursor = await conn.execute("DELETE FROM users")
            removed = cursor.rowcount
            await cursor.close()
        log.debug("Deleted all users", extra={"removed": removed})
        return max(removed, 0)

    async def get(self, record_id: int) -> Record:
        conn = self._connection
        with _translate_errors("get"):
            async with conn.execute(
                f"SELECT {_COLUMNS} FROM users WHERE id = ?", (record_id,)
            ) as cursor:
                row = await cursor.fetchone()
        if row is None:
            raise NotFound(record_id)
        return Record.from_row(row)

    async def list_all(self) -> List[Record]:
        """Every record, newest first by creation time."""
        conn = self._connection
        with _translate_errors("list_all"):
            async with conn.execute(f"SELECT {_COLUMNS} FROM users {_NEWEST_FIRST}") as cursor:
                rows = await cursor.fetchall()
        return [Record.from_row(row) for row in rows]

    async def search(self, term: Optional[str]) -> List[Record]:
        """
        Records whose name or email contains `term`, ignoring case, newest first.

        The term is matched as given, spaces included; an empty or
        whitespace-only term returns `list_all()`.
        """
        if term is None or not term.strip():
            return await self.list_all()
        folded = term.casefold()
        conn = self._connection
        with _translate_errors("search"):
            async with conn.execute(
                f"SELECT {_COLUMNS} FROM users "
                "WHERE instr(casefold(name), ?) > 0 OR instr(casefold(email), ?) > 0 "
                f"{_NEWEST_FIRST}",
                (folded, folded),
            ) as cursor:
                rows = await cursor.fetchall()
        return [Record.from_row(row) for row in rows]


__all__ = ["RecordStore", "SCHEMA"]
