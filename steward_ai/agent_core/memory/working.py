"""Bounded, in-process working memory for the current session."""

from __future__ import annotations

from collections import deque
from datetime import datetime
from typing import Deque, List, Optional

from ..schemas.domain import MemoryEntry
from .scoring import rank

WORKING_MEMORY_CAPACITY = 50


class WorkingMemory:
    """FIFO of the most recent entries; the oldest entry is evicted first."""

    def __init__(self, capacity: int = WORKING_MEMORY_CAPACITY) -> None:
        self._entries: Deque[MemoryEntry] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def add(self, entry: MemoryEntry) -> None:
        self._entries.append(entry)

    def clear(self) -> None:
        self._entries.clear()

    def entries(self) -> List[MemoryEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def relevant(self, query: str, max_results: int = 10, *, now: Optional[datetime] = None) -> List[MemoryEntry]:
        return rank(list(self._entries), query, long_term=False, max_results=max_results, now=now)
