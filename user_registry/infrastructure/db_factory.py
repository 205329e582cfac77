"""
Database connection factory for the User Registry.

Opens the single aiosqlite connection the record store runs on. The
connection is created in autocommit mode (`isolation_level=None`), so every
statement is committed before its coroutine returns and no caller can roll
back another caller's pending write.

Opening is attempted once; any failure raises `StoreUnavailable`.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

import aiosqlite

from user_registry.domain.errors import StoreUnavailable
from user_registry.utils.logging import get_logger

log = get_logger(__name__)

MEMORY_DATABASE = ":memory:"
JOURNAL_MODES = frozenset({"DELETE", "TRUNCATE", "PERSIST", "MEMORY", "WAL", "OFF"})


async def open_connection(db_path: Path | str, journal_mode: str = "WAL") -> aiosqlite.Connection:
    """
    Open an autocommit aiosqlite connection with `sqlite3.Row` rows.

    Parameters
    ----------
    db_path : Path | str
        Database file. Parent directories are created. `":memory:"` is accepted.
    journal_mode : str
        SQLite journal mode applied via PRAGMA (validated against JOURNAL_MODES).

    Returns
    -------
    aiosqlite.Connection
        An open connection.

    Raises
    ------
    StoreUnavailable
        If the directory cannot be created or the database cannot be opened.
    """
    mode = journal_mode.upper()
    if mode not in JOURNAL_MODES:
        raise StoreUnavailable(f"Unsupported journal mode '{journal_mode}'")

    target = str(db_path)
    if target != MEMORY_DATABASE:
        try:
            Path(target).parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(f"Cannot create database directory for {target}: {exc}") from exc

    try:
        conn = await aiosqlite.connect(target, isolation_level=None)
    except (sqlite3.Error, OSError) as exc:
        raise StoreUnavailable(f"Cannot open database {target}: {exc}") from exc

    try:
        conn.row_factory = sqlite3.Row
        cursor = await conn.execute(f"PRAGMA journal_mode = {mode}")
        await cursor.close()
    except sqlite3.Error as exc:
        await conn.close()
        raise StoreUnavailable(f"Cannot configure database {target}: {exc}") from exc

    log.debug("Database connection opened", extra={"db_path": target, "journal_mode": mode})
    return conn


__all__ = [
    "JOURNAL_MODES",
    "MEMORY_DATABASE",
    "open_connection",
]
