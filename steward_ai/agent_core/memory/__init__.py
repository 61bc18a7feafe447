"""Agent memory.

- ``WorkingMemory``: bounded FIFO for the current session.
- ``LongTermMemoryStore`` with ``InMemoryLongTermStore`` and ``SqlLongTermStore``.
- ``scoring``: deterministic relevance scoring shared by every store.
- ``MemoryService``: the facade used by the run loop and reflection.
"""

from .in_memory import InMemoryLongTermStore
from .interfaces import LongTermMemoryStore, MemoryEntryNotFoundError, MemoryStoreError
from .service import MemoryService
from .sql import SqlLongTermStore, build_sql_store, create_all, create_engine, create_sessionmaker
from .working import WORKING_MEMORY_CAPACITY, WorkingMemory

__all__ = [
    "InMemoryLongTermStore",
    "LongTermMemoryStore",
    "MemoryEntryNotFoundError",
    "MemoryStoreError",
    "MemoryService",
    "SqlLongTermStore",
    "build_sql_store",
    "create_all",
    "create_engine",
    "create_sessionmaker",
    "WORKING_MEMORY_CAPACITY",
    "WorkingMemory",
]
