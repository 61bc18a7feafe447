from __future__ import annotations

"""SQLAlchemy async long-term memory store.

Usage
-----

Typical wiring (tests or application setup):

- Create an async engine with ``create_engine``.
- Create tables with ``create_all``.
- Create a session factory with ``create_sessionmaker``.
- Build the store with ``SqlLongTermStore(session_factory)``.

Transaction model
-----------------

Each store method opens an ``AsyncSession``, performs its operation, and
commits. Every stored entry is durable when the method returns.

Searching loads the candidate rows and ranks them in Python with the shared
scoring functions, so SQL and in-memory stores order results identically.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ..schemas.domain import MemoryCategory, MemoryEntry
from .interfaces import MemoryEntryNotFoundError
from .models import Base, MemoryEntryRow
from .scoring import rank


def create_engine(db_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    Postgres URLs are normalized to the ``asyncpg`` driver (``postgresql://``
    and other variants become ``postgresql+asyncpg://``). In-memory SQLite
    URLs share one connection so every session sees the same database.
    """
    url = re.sub(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://", "postgresql+asyncpg://", db_url, count=1)
    url = re.sub(r"^sqlite://", "sqlite+aiosqlite://", url, count=1)
    if url.startswith("sqlite") and (":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:")):
        return create_async_engine(url, connect_args={"check_same_thread": False}, poolclass=StaticPool)
    if url.startswith("sqlite"):
        return create_async_engine(url)
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an ``async_sessionmaker`` with safe defaults for this project."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables for the current ORM metadata."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def _to_utc(ts: datetime) -> datetime:
    # SQLite drops tzinfo; values are always written and read back as UTC.
    return ts.astimezone(timezone.utc) if ts.tzinfo is not None else ts.replace(tzinfo=timezone.utc)


def _row_to_entry(row: MemoryEntryRow) -> MemoryEntry:
    return MemoryEntry(
        id=row.id,
        timestamp=_to_utc(row.timestamp),
        category=MemoryCategory(row.category),
        content=row.content,
        tags=list(row.tags or []),
        importance=row.importance,
        metadata=dict(row.meta) if row.meta is not None else None,
    )


@dataclass(frozen=True)
class SqlLongTermStore:
    """SQL implementation of ``LongTermMemoryStore``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def store(self, entry: MemoryEntry) -> None:
        """
        Insert or replace a memory entry.

        Args:
            entry: The entry to persist.
        """
        async with self.session_factory() as s:
            await s.merge(
                MemoryEntryRow(
                    id=entry.id,
                    timestamp=_to_utc(entry.timestamp),
                    category=entry.category.value,
                    content=entry.content,
                    tags=list(entry.tags),
                    importance=entry.importance,
                    meta=dict(entry.metadata) if entry.metadata is not None else None,
                )
            )
            await s.commit()

    async def get(self, entry_id: str) -> Optional[MemoryEntry]:
        async with self.session_factory() as s:
            row = await s.get(MemoryEntryRow, entry_id)
            return _row_to_entry(row) if row is not None else None

    async def search(self, query: str, max_results: int = 5, *, now: Optional[datetime] = None) -> List[MemoryEntry]:
        """
        Rank all stored entries against ``query``.

        Args:
            query: Free-form search text.
            max_results: Upper bound on returned entries.
            now: Reference time for recency scoring.

        Returns:
            Entries ordered by relevance, best first.
        """
        async with self.session_factory() as s:
            rows = (await s.execute(select(MemoryEntryRow))).scalars().all()
            entries = [_row_to_entry(r) for r in rows]
        return rank(entries, query, long_term=True, max_results=max_results, now=now)

    async def by_category(self, category: MemoryCategory, max_results: int = 20) -> List[MemoryEntry]:
        async with self.session_factory() as s:
            stmt = (
                select(MemoryEntryRow)
                .where(MemoryEntryRow.category == category.value)
                .order_by(MemoryEntryRow.timestamp.desc(), MemoryEntryRow.id)
                .limit(max_results)
            )
            rows = (await s.execute(stmt)).scalars().all()
            return [_row_to_entry(r) for r in rows]

    async def update_importance(self, entry_id: str, importance: float) -> None:
        """
        Update the importance of an existing entry.

        Raises:
            MemoryEntryNotFoundError: No entry with ``entry_id`` exists.
        """
        async with self.session_factory() as s:
            row = await s.get(MemoryEntryRow, entry_id)
            if row is None:
                raise MemoryEntryNotFoundError(entry_id)
            row.importance = min(max(importance, 0.0), 1.0)
            await s.commit()

    async def delete(self, entry_id: str) -> None:
        async with self.session_factory() as s:
            await s.execute(delete(MemoryEntryRow).where(MemoryEntryRow.id == entry_id))
            await s.commit()


async def build_sql_store(db_url: str) -> SqlLongTermStore:
    """Create engine, tables and store in one step (local development and tests)."""
    engine = create_engine(db_url)
    await create_all(engine)
    return SqlLongTermStore(create_sessionmaker(engine))
