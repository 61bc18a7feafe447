from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import AsyncIterator

import pytest

from steward_ai.agent_core.memory.in_memory import InMemoryLongTermStore
from steward_ai.agent_core.memory.interfaces import MemoryEntryNotFoundError
from steward_ai.agent_core.memory.sql import (
    SqlLongTermStore,
    build_sql_store,
    create_all,
    create_engine,
    create_sessionmaker,
)
from steward_ai.agent_core.schemas.domain import MemoryCategory, MemoryEntry

DB_URL = "sqlite+aiosqlite:///:memory:"
NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


@asynccontextmanager
async def _sql_store() -> AsyncIterator[SqlLongTermStore]:
    engine = create_engine(DB_URL)
    await create_all(engine)
    try:
        yield SqlLongTermStore(create_sessionmaker(engine))
    finally:
        await engine.dispose()


def _corpus():
    return [
        MemoryEntry(
            id="e1",
            category=MemoryCategory.error_and_fix,
            content="deploy error: missing token",
            tags=["deploy"],
            importance=0.9,
            timestamp=NOW - timedelta(days=1),
        ),
        MemoryEntry(
            id="e2",
            category=MemoryCategory.task_learning,
            content="deploy succeeded after retry",
            importance=0.6,
            timestamp=NOW - timedelta(days=2),
            metadata={"source": "reflection"},
        ),
        MemoryEntry(
            id="e3",
            category=MemoryCategory.task_learning,
            content="unrelated note",
            importance=0.4,
            timestamp=NOW,
        ),
    ]


def test_url_normalization_for_sqlite() -> None:
    engine = create_engine("sqlite:///:memory:")
    assert engine.url.drivername == "sqlite+aiosqlite"


@pytest.mark.asyncio
async def test_build_sql_store_round_trips_an_entry() -> None:
    store = await build_sql_store(DB_URL)
    try:
        entry = _corpus()[1]
        await store.store(entry)

        loaded = await store.get("e2")
        assert loaded is not None
        assert loaded.timestamp == entry.timestamp
        assert loaded.timestamp.tzinfo is not None
        assert loaded.metadata == {"source": "reflection"}
        assert loaded.category == MemoryCategory.task_learning
        assert await store.get("missing") is None
    finally:
        await store.session_factory.kw["bind"].dispose()


@pytest.mark.asyncio
async def test_store_replaces_existing_entry() -> None:
    async with _sql_store() as store:
        entry = _corpus()[0]
        await store.store(entry)
        await store.store(entry.model_copy(update={"content": "deploy error: fixed"}))

        loaded = await store.get("e1")
        assert loaded.content == "deploy error: fixed"


@pytest.mark.asyncio
async def test_search_orders_like_in_memory_store() -> None:
    mem_store = InMemoryLongTermStore()
    async with _sql_store() as sql_store:
        for entry in _corpus():
            await sql_store.store(entry)
            await mem_store.store(entry)

        sql_ids = [e.id for e in await sql_store.search("deploy error", 5, now=NOW)]
    mem_ids = [e.id for e in await mem_store.search("deploy error", 5, now=NOW)]

    assert sql_ids == mem_ids == ["e1", "e2"]


@pytest.mark.asyncio
async def test_by_category_newest_first() -> None:
    async with _sql_store() as store:
        for entry in _corpus():
            await store.store(entry)

        rows = await store.by_category(MemoryCategory.task_learning)
        assert [e.id for e in rows] == ["e3", "e2"]
        assert [e.id for e in await store.by_category(MemoryCategory.task_learning, 1)] == ["e3"]


@pytest.mark.asyncio
async def test_update_importance_and_delete() -> None:
    async with _sql_store() as store:
        await store.store(_corpus()[0])

        await store.update_importance("e1", -1.0)
        assert (await store.get("e1")).importance == 0.0

        with pytest.raises(MemoryEntryNotFoundError):
            await store.update_importance("missing", 0.5)

        await store.delete("e1")
        await store.delete("e1")
        assert await store.get("e1") is None
