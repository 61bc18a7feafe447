from __future__ import annotations

import asyncio

import pytest

from steward_ai.agent_core.memory.interfaces import MemoryEntryNotFoundError
from steward_ai.agent_core.memory.service import MemoryService
from steward_ai.agent_core.memory.working import WorkingMemory
from steward_ai.agent_core.schemas.domain import ExecutionResult, MemoryCategory, MemoryEntry


def test_note_adds_to_working_memory() -> None:
    svc = MemoryService(working=WorkingMemory(capacity=2))
    entry = svc.note(MemoryCategory.tool_usage_pattern, "used search", tags=["search"], importance=0.6)

    assert svc.working_memory == [entry]
    assert entry.tags == ["search"]
    assert svc.relevant_working_memory("search") == [entry]

    svc.clear_working_memory()
    assert svc.working_memory == []


@pytest.mark.asyncio
async def test_long_term_crud() -> None:
    svc = MemoryService()
    entry = MemoryEntry(category=MemoryCategory.domain_knowledge, content="tokyo is in japan", importance=0.5)
    await svc.store_long_term(entry)

    assert [e.id for e in await svc.search_long_term("tokyo")] == [entry.id]
    assert [e.id for e in await svc.memories_by_category(MemoryCategory.domain_knowledge)] == [entry.id]
    assert await svc.memories_by_category(MemoryCategory.error_and_fix) == []

    await svc.update_importance(entry.id, 3.0)
    assert (await svc.store.get(entry.id)).importance == 1.0

    await svc.delete(entry.id)
    await svc.delete(entry.id)
    assert await svc.store.get(entry.id) is None
    with pytest.raises(MemoryEntryNotFoundError):
        await svc.update_importance(entry.id, 0.5)


@pytest.mark.asyncio
async def test_stored_entries_are_copies() -> None:
    svc = MemoryService()
    entry = MemoryEntry(category=MemoryCategory.domain_knowledge, content="fact", tags=["a"])
    await svc.store_long_term(entry)
    entry.tags.append("mutated")

    assert (await svc.store.get(entry.id)).tags == ["a"]


@pytest.mark.asyncio
async def test_context_for_task() -> None:
    svc = MemoryService()
    assert await svc.context_for_task("deploy") == ""

    svc.note(MemoryCategory.conversation_context, "user asked about deploy")
    await svc.store_long_term(MemoryEntry(category=MemoryCategory.error_and_fix, content="deploy needs a token"))

    context = await svc.context_for_task("deploy")
    assert context == (
        "=== Working memory ===\n- user asked about deploy\n\n"
        "=== Long-term memory ===\n- deploy needs a token"
    )


@pytest.mark.asyncio
async def test_learn_from_execution_weights_failures_higher() -> None:
    svc = MemoryService()
    ok = await svc.learn_from_execution(
        "fetch data", ExecutionResult(original_task="fetch data", success=True, duration=1.5), ["fast"]
    )
    bad = await svc.learn_from_execution(
        "fetch data", ExecutionResult(original_task="fetch data", success=False), []
    )

    assert ok.category == MemoryCategory.task_learning
    assert ok.importance == 0.7
    assert ok.tags == ["execution", "success"]
    assert "Duration: 1.5s" in ok.content
    assert "Insights: fast" in ok.content
    assert bad.importance == 0.9
    assert bad.tags == ["execution", "failure"]
    assert len(await svc.memories_by_category(MemoryCategory.task_learning)) == 2


@pytest.mark.asyncio
async def test_deferred_writes_are_flushed() -> None:
    svc = MemoryService()
    entry = MemoryEntry(category=MemoryCategory.domain_knowledge, content="later")

    svc.defer(svc.store_long_term(entry))
    assert svc.pending_writes == 1

    assert await svc.flush() == []
    assert svc.pending_writes == 0
    assert await svc.store.get(entry.id) is not None


@pytest.mark.asyncio
async def test_flush_collects_failures() -> None:
    svc = MemoryService()

    async def failing() -> None:
        await asyncio.sleep(0)
        raise RuntimeError("disk full")

    async def ok() -> str:
        return "fine"

    svc.defer(failing())
    svc.defer(ok())
    errors = await svc.flush()

    assert len(errors) == 1
    assert str(errors[0]) == "disk full"
    assert await svc.flush() == []
