"""Process-local long-term memory store, used by default and in tests."""

from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from ..schemas.domain import MemoryCategory, MemoryEntry
from .interfaces import MemoryEntryNotFoundError
from .scoring import rank


class InMemoryLongTermStore:
    def __init__(self) -> None:
        self._entries: Dict[str, MemoryEntry] = {}

    async def store(self, entry: MemoryEntry) -> None:
        self._entries[entry.id] = entry.model_copy(deep=True)

    async def get(self, entry_id: str) -> Optional[MemoryEntry]:
        entry = self._entries.get(entry_id)
        return entry.model_copy(deep=True) if entry is not None else None

    async def search(self, query: str, max_results: int = 5, *, now: Optional[datetime] = None) -> List[MemoryEntry]:
        return rank(list(self._entries.values()), query, long_term=True, max_results=max_results, now=now)

    async def by_category(self, category: MemoryCategory, max_results: int = 20) -> List[MemoryEntry]:
        matching = [e for e in self._entries.values() if e.category == category]
        matching.sort(key=lambda e: e.timestamp, reverse=True)
        return matching[:max_results]

    async def update_importance(self, entry_id: str, importance: float) -> None:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise MemoryEntryNotFoundError(entry_id)
        self._entries[entry_id] = entry.model_copy(update={"importance": min(max(importance, 0.0), 1.0)})

    async def delete(self, entry_id: str) -> None:
        self._entries.pop(entry_id, None)

    def __len__(self) -> int:
        return len(self._entries)
