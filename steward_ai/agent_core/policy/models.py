from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

from pydantic import Field

from ..schemas.base import BaseSchema
from ..schemas.config import AgentConfig
from ..schemas.domain import ApprovalMode


class ApprovalConfig(BaseSchema):
    """
    Configuration for human-in-the-loop approval gates.

    ``auto_approved_tools`` is a snapshot of the tool registry's per-tool
    auto-approval flags taken when the decision is made.
    """
    mode: ApprovalMode = ApprovalMode.always_ask
    max_tool_calls_per_run: int = Field(default=10, ge=0)
    auto_approved_tools: FrozenSet[str] = Field(default_factory=frozenset)

    @classmethod
    def from_agent_config(cls, config: AgentConfig, *, auto_approved_tools: FrozenSet[str]) -> "ApprovalConfig":
        return cls(
            mode=config.approval_mode,
            max_tool_calls_per_run=config.max_tool_calls_per_run,
            auto_approved_tools=auto_approved_tools,
        )


class SafetyPolicy(BaseSchema):
    """
    Configuration for safety guardrails.

    Includes secret redaction and a resource limit on tool arguments.
    """
    redact_secrets: bool = True
    max_tool_args_bytes: int = Field(default=64_000, ge=1, le=5_000_000)

    @classmethod
    def from_agent_config(cls, config: AgentConfig) -> "SafetyPolicy":
        return cls(redact_secrets=config.redact_secrets, max_tool_args_bytes=config.max_tool_args_bytes)


@dataclass(frozen=True)
class RunCounters:
    """
    Per-run counters the approval decision depends on.

    Attributes:
        tool_call_count: Tools executed so far in the run.
        thread_granted: Whether the user approved a tool call earlier in the run.
    """
    tool_call_count: int = 0
    thread_granted: bool = False


@dataclass(frozen=True)
class ApprovalVerdict:
    """
    Result of an approval evaluation for a proposed tool call.

    Attributes:
        require_approval: Whether a human decision is needed before execution.
        reason: Human-readable explanation of the rule that decided.
        tool_id: The tool the verdict applies to.
    """
    require_approval: bool
    reason: str
    tool_id: Optional[str] = None
