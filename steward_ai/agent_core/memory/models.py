from __future__ import annotations

"""SQLAlchemy ORM models for long-term memory persistence.

These ORM models define the SQL schema used by ``SqlLongTermStore`` in
``steward_ai.agent_core.memory.sql``.

Table names are prefixed with ``sa_`` to avoid collisions in shared databases.
Structured columns use the generic ``JSON`` type so the same schema works on
SQLite (local development, tests) and PostgreSQL.
"""

from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import JSON, DateTime, Float, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class MemoryEntryRow(Base):
    """Row model for ``sa_memory_entries``.

    Key fields:

    - ``category``: the ``MemoryCategory`` value, indexed for category listing.
    - ``importance``: retrieval weight in ``[0, 1]``.
    - ``tags`` / ``meta``: JSON arrays/objects.
    """

    __tablename__ = "sa_memory_entries"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    category: Mapped[str] = mapped_column(String(32), index=True)
    content: Mapped[str] = mapped_column(Text)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list)
    importance: Mapped[float] = mapped_column(Float)
    meta: Mapped[Optional[Dict[str, str]]] = mapped_column(JSON, nullable=True)
