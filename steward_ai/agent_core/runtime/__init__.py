"""LangGraph-based execution runtime for agent runs.

The runtime takes a conversation and drives it through the agent run loop:

- model turns are streamed and parsed into sections, display text and at most
  one tool proposal,
- tool proposals are routed through the approval policy, optional human
  approval and the tool invoker,
- optional plans are executed step by step and reviewed at the end.

The main entry point is ``AgentEngine``; its collaborators are bundled in
``EngineDeps``.
"""

from .engine import AgentEngine
from .models import EngineDeps
from .prompts import DEFAULT_SYSTEM_PROMPT, build_system_prompt
from .state import (
    AgentState,
    AwaitingApproval,
    AwaitingModel,
    AwaitingPlanApproval,
    Completed,
    ExecutingPlan,
    ExecutingTool,
    Failed,
    Idle,
    Planning,
    Reflecting,
    ToolProposed,
    agent_state_adapter,
    can_start,
    is_suspended,
    is_terminal,
)

__all__ = [
    "AgentEngine",
    "EngineDeps",
    "DEFAULT_SYSTEM_PROMPT",
    "build_system_prompt",
    "AgentState",
    "AwaitingApproval",
    "AwaitingModel",
    "AwaitingPlanApproval",
    "Completed",
    "ExecutingPlan",
    "ExecutingTool",
    "Failed",
    "Idle",
    "Planning",
    "Reflecting",
    "ToolProposed",
    "agent_state_adapter",
    "can_start",
    "is_suspended",
    "is_terminal",
]
