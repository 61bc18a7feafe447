from __future__ import annotations

"""Long-term memory store contract.

The memory service depends on this Protocol instead of a concrete storage
backend.

Contract guidelines
-------------------

- All methods are async.
- ``store`` is durable when it returns (or raises).
- ``search`` ranks with ``scoring.long_term_relevance``, so every backend
  returns the same order for the same corpus.
- ``update_importance`` raises ``MemoryEntryNotFoundError`` for unknown ids;
  ``delete`` of an unknown id is a no-op.
"""

from datetime import datetime
from typing import List, Optional, Protocol

from ..schemas.domain import MemoryCategory, MemoryEntry


class MemoryStoreError(Exception):
    """Base class for memory store failures."""


class MemoryEntryNotFoundError(MemoryStoreError):
    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"memory entry not found: {entry_id}")


class LongTermMemoryStore(Protocol):
    """Persist and query long-term memory entries."""

    async def store(self, entry: MemoryEntry) -> None:
        """
        Insert or replace an entry.

        Args:
            entry: The entry to persist, keyed by ``entry.id``.
        """
        ...

    async def get(self, entry_id: str) -> Optional[MemoryEntry]: ...

    async def search(self, query: str, max_results: int = 5, *, now: Optional[datetime] = None) -> List[MemoryEntry]:
        """
        Return the entries most relevant to ``query``, best first.

        Args:
            query: Free-form search text.
            max_results: Upper bound on returned entries.
            now: Reference time for recency scoring (defaults to the current time).
        """
        ...

    async def by_category(self, category: MemoryCategory, max_results: int = 20) -> List[MemoryEntry]:
        """Return entries of ``category``, newest first."""
        ...

    async def update_importance(self, entry_id: str, importance: float) -> None: ...

    async def delete(self, entry_id: str) -> None: ...
