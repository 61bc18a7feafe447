from __future__ import annotations

"""Convenience factories for wiring the agent core.

This module contains small helpers to build a tool registry, a memory service
and an ``AgentEngine`` from application ``Settings``.

The intent is to keep application wiring and tests concise, while still
allowing advanced deployments to provide their own model service, registry
and dependency bundles.
"""

from typing import Iterable, Optional

from ..core.config import Settings
from ..core.config import settings as default_settings
from .memory.service import MemoryService
from .memory.sql import build_sql_store
from .model.base import ModelService
from .model.pydantic_ai_service import PydanticAIModelService
from .planning.planner import TaskPlanner
from .reflection.service import ReflectionService
from .runtime import EngineDeps
from .runtime.engine import AgentEngine, OnMessageAdded, OnStateChange
from .schemas.config import AgentConfig
from .tools.base import Tool
from .tools.registry import ToolRegistry


def build_registry(tools: Iterable[Tool] = ()) -> ToolRegistry:
    """Build a ``ToolRegistry`` holding ``tools``, all enabled."""
    reg = ToolRegistry()
    for tool in tools:
        reg.register(tool)
    return reg


async def build_memory_service(settings: Optional[Settings] = None) -> MemoryService:
    """Build the memory service.

    Long-term memory is stored in the database named by
    ``memory_database_url`` (tables are created on first use) and kept in
    process memory when no URL is configured.
    """
    settings = settings or default_settings
    if settings.memory_database_url:
        return MemoryService(await build_sql_store(settings.memory_database_url))
    return MemoryService()


def build_engine(
    *,
    config: AgentConfig,
    deps: EngineDeps,
    on_state_change: Optional[OnStateChange] = None,
    on_message_added: Optional[OnMessageAdded] = None,
) -> AgentEngine:
    """Construct an ``AgentEngine`` from config and dependencies."""
    return AgentEngine(
        config=config,
        deps=deps,
        on_state_change=on_state_change,
        on_message_added=on_message_added,
    )


async def build_engine_from_settings(
    settings: Optional[Settings] = None,
    *,
    tools: Iterable[Tool] = (),
    model_service: Optional[ModelService] = None,
    memory: Optional[MemoryService] = None,
    on_state_change: Optional[OnStateChange] = None,
    on_message_added: Optional[OnMessageAdded] = None,
) -> AgentEngine:
    """Wire a fully featured engine (memory, reflection, planning) from settings."""
    settings = settings or default_settings
    config = AgentConfig.from_settings(settings)
    model = model_service or PydanticAIModelService()
    memory = memory or await build_memory_service(settings)
    deps = EngineDeps(
        model=model,
        tools=build_registry(tools),
        memory=memory,
        reflection=ReflectionService(model, memory, config.model),
        planner=TaskPlanner(model, config.model),
    )
    return build_engine(
        config=config,
        deps=deps,
        on_state_change=on_state_change,
        on_message_added=on_message_added,
    )
