"""Run-loop states.

``AgentState`` is a discriminated union of frozen models: the ``kind`` tag
selects the variant and every variant carries exactly the payload its step
needs. The engine owns the current value and replaces it on every transition.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import Field, TypeAdapter

from ..schemas.base import FrozenSchema
from ..schemas.domain import ExecutionResult, TaskPlan, ToolCallProposal


class Idle(FrozenSchema):
    kind: Literal["idle"] = "idle"


class Planning(FrozenSchema):
    kind: Literal["planning"] = "planning"
    plan: Optional[TaskPlan] = None


class AwaitingPlanApproval(FrozenSchema):
    kind: Literal["awaiting_plan_approval"] = "awaiting_plan_approval"
    plan: TaskPlan


class ExecutingPlan(FrozenSchema):
    kind: Literal["executing_plan"] = "executing_plan"
    plan: TaskPlan
    step_index: int = Field(default=0, ge=0)


class AwaitingModel(FrozenSchema):
    kind: Literal["awaiting_model"] = "awaiting_model"


class ToolProposed(FrozenSchema):
    kind: Literal["tool_proposed"] = "tool_proposed"
    proposal: ToolCallProposal


class AwaitingApproval(FrozenSchema):
    kind: Literal["awaiting_approval"] = "awaiting_approval"
    proposal: ToolCallProposal


class ExecutingTool(FrozenSchema):
    kind: Literal["executing_tool"] = "executing_tool"
    proposal: ToolCallProposal


class Reflecting(FrozenSchema):
    kind: Literal["reflecting"] = "reflecting"
    execution_result: ExecutionResult


class Completed(FrozenSchema):
    kind: Literal["completed"] = "completed"


class Failed(FrozenSchema):
    kind: Literal["failed"] = "failed"
    message: str


AgentState = Annotated[
    Union[
        Idle,
        Planning,
        AwaitingPlanApproval,
        ExecutingPlan,
        AwaitingModel,
        ToolProposed,
        AwaitingApproval,
        ExecutingTool,
        Reflecting,
        Completed,
        Failed,
    ],
    Field(discriminator="kind"),
]

agent_state_adapter: TypeAdapter[AgentState] = TypeAdapter(AgentState)


def is_terminal(state: AgentState) -> bool:
    return isinstance(state, (Completed, Failed))


def is_suspended(state: AgentState) -> bool:
    """True while the run waits for an external approve/reject decision."""
    return isinstance(state, (AwaitingApproval, AwaitingPlanApproval))


def can_start(state: AgentState) -> bool:
    return isinstance(state, (Idle, Completed, Failed))
