"""Core agent runtime, policies and memory.

This package contains the "engine room" of the agent system.

Design overview
---------------

The agent core is built around one run loop and leaf components that never
depend on it:

- ``parsing`` turns raw model text into sections, display text and at most
  one ``ToolCallProposal``.
- ``policy`` decides, as a pure function, whether a proposal needs human
  approval, and guards tool arguments.
- ``tools`` defines the tool contract, the registry and the invoker.
- ``memory`` and ``reflection`` remember what runs taught and feed it back
  into later system prompts.
- ``runtime.AgentEngine`` sequences everything with LangGraph.

Typical usage
-------------

Most applications should use ``agent_core.factory.build_engine_from_settings``:

1. Provide the tools the agent may use.
2. Call ``start`` with the user's message.
3. If the run suspends, resolve it with ``approve_tool_call`` /
   ``reject_tool_call`` (or ``approve_plan`` / ``reject_plan``).
"""

from .cancellation import CancellationToken, GuardTimeoutError, RunCancelledError
from .schemas.config import AgentConfig, ModelCallConfig
from .schemas.domain import (
    ApprovalMode,
    ConversationMessage,
    MemoryCategory,
    MemoryEntry,
    MessageRole,
    RiskLevel,
    ToolCallProposal,
)

__all__ = [
    "CancellationToken",
    "GuardTimeoutError",
    "RunCancelledError",
    "AgentConfig",
    "ModelCallConfig",
    "ApprovalMode",
    "ConversationMessage",
    "MemoryCategory",
    "MemoryEntry",
    "MessageRole",
    "RiskLevel",
    "ToolCallProposal",
]
