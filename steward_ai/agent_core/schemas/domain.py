from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional
from uuid import uuid4

from pydantic import Field

from .base import BaseSchema, FrozenSchema


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid4())


class MessageRole(str, Enum):
    system = "system"
    user = "user"
    assistant = "assistant"
    tool = "tool"


class ApprovalMode(str, Enum):
    always_ask = "always_ask"
    per_thread = "per_thread"
    auto_approve = "auto_approve"


class RiskLevel(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    critical = "critical"


class MemoryCategory(str, Enum):
    user_preference = "user_preference"
    task_learning = "task_learning"
    domain_knowledge = "domain_knowledge"
    tool_usage_pattern = "tool_usage_pattern"
    error_and_fix = "error_and_fix"
    conversation_context = "conversation_context"


class FunctionCall(BaseSchema):
    """Function name and JSON-encoded arguments of an OpenAI-style tool call."""

    name: str
    arguments: str = "{}"


class ToolCallDescriptor(BaseSchema):
    """
    OpenAI-style tool call descriptor.

    This is the shape delivered by the model service's out-of-band tool-call
    channel and the shape attached to the assistant message that proposed a
    tool.
    """

    id: str = Field(default_factory=_new_id)
    type: str = "function"
    function: FunctionCall


class ConversationMessage(BaseSchema):
    """
    One entry of the conversation history.

    History is append-only. The in-progress assistant placeholder is the only
    message whose ``text``/``is_streaming``/``tool_calls`` change after it is
    appended, and only until it is finalized.
    """

    id: str = Field(default_factory=_new_id)
    role: MessageRole
    text: str = ""
    is_streaming: bool = False
    tool_call_id: Optional[str] = None
    tool_calls: Optional[List[ToolCallDescriptor]] = None
    created_at: datetime = Field(default_factory=_utc_now)


class ToolCallProposal(FrozenSchema):
    """
    A model-proposed tool invocation.

    ``input`` preserves key order as produced by the model. ``call_id`` links
    the descriptor recorded on the assistant message with the tool-role
    message carrying the result.
    """

    kind: Literal["tool_call"] = "tool_call"
    tool_id: str
    requires_approval: bool = True
    input: Dict[str, Any] = Field(default_factory=dict)
    rationale: str = ""
    next_step_hint: str = ""
    call_id: str = Field(default_factory=_new_id)


class PlanStep(BaseSchema):
    """A single step of a task plan as produced by the planning prompt."""

    id: str = Field(default_factory=_new_id)
    description: str
    tools_required: List[str] = Field(default_factory=list, alias="toolsRequired")
    expected_outcome: str = Field(default="", alias="expectedOutcome")
    dependencies: List[str] = Field(default_factory=list)
    estimated_duration: Optional[float] = Field(default=None, alias="estimatedDuration")


class TaskPlan(BaseSchema):
    id: str = Field(default_factory=_new_id)
    original_task: str = ""
    steps: List[PlanStep] = Field(default_factory=list)
    estimated_duration: Optional[float] = Field(default=None, alias="estimatedDuration")
    risk_assessment: RiskLevel = Field(default=RiskLevel.medium, alias="riskAssessment")
    created_at: datetime = Field(default_factory=_utc_now)


class ExecutionStep(BaseSchema):
    description: str
    success: bool
    duration: float = 0.0
    error: Optional[str] = None


class ExecutionResult(BaseSchema):
    """
    Outcome of an executed plan.

    Built by ``PlanProgress.to_execution_result`` once the plan has either run
    every step or has been marked failed.
    """

    id: str = Field(default_factory=_new_id)
    original_task: str
    steps: List[ExecutionStep] = Field(default_factory=list)
    success: bool
    duration: float = 0.0
    created_at: datetime = Field(default_factory=_utc_now)


class Insight(FrozenSchema):
    title: str
    description: str
    category: str = "general"
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)


class Pattern(FrozenSchema):
    description: str
    frequency: int = 1
    trend: str = "emerging"


class Recommendation(FrozenSchema):
    title: str
    description: str
    category: str = "general"
    priority: float = Field(default=0.7, ge=0.0, le=1.0)
    impact: float = Field(default=0.6, ge=0.0, le=1.0)
    effort: str = "medium"


class ReflectionInsight(FrozenSchema):
    id: str = Field(default_factory=_new_id)
    execution_result: ExecutionResult
    initial_insights: List[Insight] = Field(default_factory=list)
    pattern_analysis: List[Pattern] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=_utc_now)


class MemoryEntry(BaseSchema):
    id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_utc_now)
    category: MemoryCategory
    content: str
    tags: List[str] = Field(default_factory=list)
    importance: float = Field(default=0.5, ge=0.0, le=1.0)
    metadata: Optional[Dict[str, str]] = None
