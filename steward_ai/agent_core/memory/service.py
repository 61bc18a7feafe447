from __future__ import annotations

"""Memory service combining working and long-term memory.

``MemoryService`` is shared across runs. It owns:

- a bounded ``WorkingMemory`` for the current session,
- a ``LongTermMemoryStore`` for durable learnings.

Background writes
-----------------

The run loop never awaits long-term writes inline. It schedules them with
``defer`` and awaits ``flush`` before ``run`` returns. ``flush`` collects and
logs write failures instead of raising: a failed learning write must not
change the outcome of a run whose answer is already final.
"""

import asyncio
import logging
from datetime import datetime
from typing import Awaitable, List, Optional, Sequence, Set

from ...core.monitoring import log_error
from ..schemas.domain import ExecutionResult, MemoryCategory, MemoryEntry
from .in_memory import InMemoryLongTermStore
from .interfaces import LongTermMemoryStore
from .working import WorkingMemory

logger = logging.getLogger(__name__)


class MemoryService:
    """Working memory, long-term memory and deferred write-back."""

    def __init__(
        self,
        store: Optional[LongTermMemoryStore] = None,
        *,
        working: Optional[WorkingMemory] = None,
    ) -> None:
        self._store: LongTermMemoryStore = store if store is not None else InMemoryLongTermStore()
        self._working = working if working is not None else WorkingMemory()
        self._pending: Set["asyncio.Task[object]"] = set()

    @property
    def store(self) -> LongTermMemoryStore:
        return self._store

    # ------------------------------------------------------------------
    # working memory
    # ------------------------------------------------------------------

    @property
    def working_memory(self) -> List[MemoryEntry]:
        return self._working.entries()

    def add_to_working_memory(self, entry: MemoryEntry) -> None:
        self._working.add(entry)

    def note(
        self,
        category: MemoryCategory,
        content: str,
        *,
        tags: Sequence[str] = (),
        importance: float = 0.5,
    ) -> MemoryEntry:
        """Create a working-memory entry from plain values and add it."""
        entry = MemoryEntry(category=category, content=content, tags=list(tags), importance=importance)
        self._working.add(entry)
        return entry

    def clear_working_memory(self) -> None:
        self._working.clear()

    def relevant_working_memory(
        self, query: str, max_results: int = 10, *, now: Optional[datetime] = None
    ) -> List[MemoryEntry]:
        return self._working.relevant(query, max_results, now=now)

    # ------------------------------------------------------------------
    # long-term memory
    # ------------------------------------------------------------------

    async def store_long_term(self, entry: MemoryEntry) -> None:
        await self._store.store(entry)

    async def search_long_term(
        self, query: str, max_results: int = 5, *, now: Optional[datetime] = None
    ) -> List[MemoryEntry]:
        return await self._store.search(query, max_results, now=now)

    async def memories_by_category(self, category: MemoryCategory, max_results: int = 20) -> List[MemoryEntry]:
        return await self._store.by_category(category, max_results)

    async def update_importance(self, entry_id: str, importance: float) -> None:
        await self._store.update_importance(entry_id, importance)

    async def delete(self, entry_id: str) -> None:
        await self._store.delete(entry_id)

    # ------------------------------------------------------------------
    # context integration
    # ------------------------------------------------------------------

    async def context_for_task(self, task: str, *, now: Optional[datetime] = None) -> str:
        """
        Render the memory context relevant to ``task`` for the system prompt.

        Args:
            task: The task description (usually the latest user message).
            now: Reference time for recency scoring.

        Returns:
            A text block with working and long-term sections, or ``""`` when
            nothing relevant is remembered.
        """
        working = self._working.relevant(task, 5, now=now)
        long_term = await self._store.search(task, 5, now=now)

        parts: List[str] = []
        if working:
            parts.append("=== Working memory ===\n" + "\n".join(f"- {e.content}" for e in working))
        if long_term:
            parts.append("=== Long-term memory ===\n" + "\n".join(f"- {e.content}" for e in long_term))
        return "\n\n".join(parts)

    async def learn_from_execution(self, task: str, result: ExecutionResult, insights: Sequence[str]) -> MemoryEntry:
        """
        Persist what an executed plan taught.

        Failures are stored with higher importance than successes so they
        surface first in later searches.
        """
        entry = MemoryEntry(
            category=MemoryCategory.task_learning,
            content=(
                f"Task: {task}\n"
                f"Result: {'success' if result.success else 'failure'}\n"
                f"Duration: {result.duration:.1f}s\n"
                f"Insights: {', '.join(insights)}"
            ),
            tags=["execution", "success" if result.success else "failure"],
            importance=0.7 if result.success else 0.9,
        )
        await self._store.store(entry)
        return entry

    # ------------------------------------------------------------------
    # deferred writes
    # ------------------------------------------------------------------

    def defer(self, write: Awaitable[object]) -> None:
        """Schedule a long-term write to run in the background."""
        task = asyncio.ensure_future(write)
        self._pending.add(task)

    @property
    def pending_writes(self) -> int:
        return sum(1 for t in self._pending if not t.done())

    async def flush(self) -> List[BaseException]:
        """
        Await every deferred write.

        Returns:
            The exceptions raised by failed writes (already logged).
        """
        errors: List[BaseException] = []
        while self._pending:
            batch = list(self._pending)
            self._pending.clear()
            results = await asyncio.gather(*batch, return_exceptions=True)
            for res in results:
                if isinstance(res, BaseException):
                    logger.warning(f"deferred memory write failed: {res!r}")
                    log_error("MemoryWriteError", str(res))
                    errors.append(res)
        return errors
