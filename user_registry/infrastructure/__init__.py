"""
Infrastructure package for the User Registry.

Centralizes database concerns: the aiosqlite connection factory and the
record store built on it. Keep this layer focused on I/O and error
translation, decoupled from lifecycle and presentation logic.
"""

from user_registry.infrastructure.db_factory import open_connection
from user_registry.infrastructure.record_store import RecordStore

__all__ = [
    "RecordStore",
    "open_connection",
]
