from __future__ import annotations

from steward_ai.agent_core.memory.working import WORKING_MEMORY_CAPACITY, WorkingMemory
from steward_ai.agent_core.schemas.domain import MemoryCategory, MemoryEntry


def _entry(content: str) -> MemoryEntry:
    return MemoryEntry(category=MemoryCategory.conversation_context, content=content)


def test_default_capacity() -> None:
    assert WorkingMemory().capacity == WORKING_MEMORY_CAPACITY == 50


def test_oldest_entry_is_evicted() -> None:
    wm = WorkingMemory(capacity=3)
    for i in range(5):
        wm.add(_entry(f"note {i}"))

    assert len(wm) == 3
    assert [e.content for e in wm.entries()] == ["note 2", "note 3", "note 4"]


def test_relevant_and_clear() -> None:
    wm = WorkingMemory()
    wm.add(_entry("the deploy script failed"))
    wm.add(_entry("lunch plans"))

    assert [e.content for e in wm.relevant("deploy")] == ["the deploy script failed"]

    wm.clear()
    assert wm.entries() == []
