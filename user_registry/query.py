"""
Query/search façade over the record store.

Holds nothing but the store reference: every call re-queries, so results
always include mutations made since the previous search.
"""

from __future__ import annotations

from typing import List, Optional

from user_registry.domain.models import Record
from user_registry.infrastructure.record_store import RecordStore


class UserQuery:
    def __init__(self, store: RecordStore) -> None:
        self._store = store

    async def list_all(self) -> List[Record]:
        return await self._store.list_all()

    async def search(self, term: Optional[str] = None) -> List[Record]:
        """Filtered, newest-first view; a blank term lists everything."""
        if term is None or not term.strip():
            return await self._store.list_all()
        return await self._store.search(term)


__all__ = ["UserQuery"]
