from __future__ import annotations

"""Task planning.

``TaskPlanner`` asks the model for a JSON plan of the task at hand and turns
the answer into a ``TaskPlan``. Plans are advisory: whenever the answer can
not be parsed, or contains no usable step, the planner returns ``None`` and
the run loop falls back to executing the task directly.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from ..model.base import ModelService, collect_text
from ..parsing.json_blocks import first_to_last_brace
from ..schemas.config import ModelCallConfig
from ..schemas.domain import ConversationMessage, MessageRole, PlanStep, RiskLevel, TaskPlan

logger = logging.getLogger(__name__)

PLAN_PROMPT_TEMPLATE = """Analyze the following task and produce an execution plan.

Task: {task}

Available tools: {tools}

Answer with a single JSON object in this format:
{{
    "steps": [
        {{
            "description": "what this step does",
            "toolsRequired": ["tool names"],
            "expectedOutcome": "what the step should produce",
            "dependencies": ["ids of steps this one depends on"],
            "estimatedDuration": 30
        }}
    ],
    "estimatedDuration": 120,
    "riskAssessment": "low|medium|high|critical"
}}

Only plan tasks that need several steps. For a simple task answer with
{{"steps": []}} so it is executed directly."""

_STEP_KEYS = ("id", "description", "toolsRequired", "expectedOutcome", "dependencies", "estimatedDuration")


def build_plan_prompt(task: str, tool_names: Sequence[str]) -> str:
    return PLAN_PROMPT_TEMPLATE.format(task=task, tools=", ".join(tool_names) if tool_names else "none")


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return None


def _parse_step(raw: Any) -> Optional[PlanStep]:
    if not isinstance(raw, dict):
        return None
    description = str(raw.get("description") or "").strip()
    if not description:
        return None
    data: Dict[str, Any] = {k: raw[k] for k in _STEP_KEYS if k in raw}
    data["description"] = description
    if "id" in data:
        data["id"] = str(data["id"])
    tools = data.get("toolsRequired")
    data["toolsRequired"] = [str(t) for t in tools] if isinstance(tools, list) else []
    deps = data.get("dependencies")
    data["dependencies"] = [str(d) for d in deps] if isinstance(deps, list) else []
    data["expectedOutcome"] = str(data.get("expectedOutcome") or "")
    data["estimatedDuration"] = _as_float(data.get("estimatedDuration"))
    try:
        return PlanStep.model_validate(data)
    except ValidationError as e:
        logger.debug(f"Skipping invalid plan step: {e}")
        return None


def parse_task_plan(text: str, task: str = "") -> Optional[TaskPlan]:
    """
    Parse a model-produced plan.

    The JSON object spanning from the first ``{`` to the last ``}`` is read.
    Steps without a description are skipped and an unknown risk level is read
    as ``medium``.

    Returns:
        The plan, or ``None`` when no JSON object or no usable step is found.
    """
    obj = first_to_last_brace(text)
    if obj is None:
        logger.debug("Plan response carried no JSON object")
        return None
    raw_steps = obj.get("steps")
    if not isinstance(raw_steps, list):
        logger.debug("Plan response has no steps array")
        return None

    steps: List[PlanStep] = [s for s in (_parse_step(r) for r in raw_steps) if s is not None]
    if not steps:
        return None

    try:
        risk = RiskLevel(str(obj.get("riskAssessment", "medium")).lower())
    except ValueError:
        risk = RiskLevel.medium

    return TaskPlan(
        original_task=task,
        steps=steps,
        estimated_duration=_as_float(obj.get("estimatedDuration")),
        risk_assessment=risk,
    )


class TaskPlanner:
    """Produce task plans with one model call."""

    def __init__(self, model_service: ModelService, model_config: ModelCallConfig) -> None:
        self._model = model_service
        self._config = model_config

    async def plan(
        self,
        history: Sequence[ConversationMessage],
        task: str,
        tool_names: Sequence[str] = (),
    ) -> Optional[TaskPlan]:
        """
        Ask the model for a plan of ``task``.

        Args:
            history: Conversation so far; the trailing user message is replaced
                by the planning prompt.
            task: Task to plan, usually the latest user message.
            tool_names: Tools the plan may refer to.

        Returns:
            The parsed plan or ``None`` when the task should run directly.
        """
        messages = list(history)
        if messages and messages[-1].role == MessageRole.user:
            messages.pop()
        messages.append(ConversationMessage(role=MessageRole.user, text=build_plan_prompt(task, tool_names)))

        text = await collect_text(self._model, messages, self._config)
        plan = parse_task_plan(text, task)
        if plan is None:
            logger.info("No usable plan produced; executing task directly")
        else:
            logger.info(f"Plan generated: steps={len(plan.steps)} risk={plan.risk_assessment.value}")
        return plan
