from __future__ import annotations

"""Runtime dependency bundle and LangGraph state types.

The runtime engine is dependency-injected.

- ``EngineDeps`` collects the collaborators the engine needs.
- ``_GraphState`` is the state passed between LangGraph nodes.
"""

from dataclasses import dataclass
from typing import Optional, Required, TypedDict

from ..memory.service import MemoryService
from ..model.base import ModelService
from ..parsing.response_parser import ResponseParser
from ..planning.planner import TaskPlanner
from ..policy.safety import SafetyGuard
from ..reflection.service import ReflectionService
from ..tools.registry import ToolRegistry
from .state import AgentState


@dataclass(frozen=True)
class EngineDeps:
    """Dependency bundle for ``AgentEngine``.

    This object is typically constructed by ``build_engine`` and passed into
    the engine. It holds:

    - the model service and the tool registry (required),
    - memory, reflection and planning services (optional; the matching
      features are skipped when absent),
    - the response parser and safety guard (defaults are created when absent).
    """

    model: ModelService
    tools: ToolRegistry

    memory: Optional[MemoryService] = None
    reflection: Optional[ReflectionService] = None
    planner: Optional[TaskPlanner] = None
    parser: Optional[ResponseParser] = None
    guard: Optional[SafetyGuard] = None


class _GraphState(TypedDict):
    """LangGraph state for a single engine run.

    ``state`` is the current ``AgentState``; nodes replace it and routing
    dispatches on its variant.
    """

    state: Required[AgentState]
