"""Task planning: plan prompt, plan parsing and plan progress."""

from .planner import PLAN_PROMPT_TEMPLATE, TaskPlanner, build_plan_prompt, parse_task_plan
from .progress import PlanProgress

__all__ = [
    "PLAN_PROMPT_TEMPLATE",
    "TaskPlanner",
    "build_plan_prompt",
    "parse_task_plan",
    "PlanProgress",
]
