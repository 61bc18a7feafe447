from __future__ import annotations

import json
from typing import List

import pytest

from steward_ai.agent_core.planning.planner import TaskPlanner, build_plan_prompt, parse_task_plan
from steward_ai.agent_core.schemas.config import ModelCallConfig
from steward_ai.agent_core.schemas.domain import ConversationMessage, MessageRole, RiskLevel


class _FakeModel:
    def __init__(self, answer: str) -> None:
        self.answer = answer
        self.histories: List[List[ConversationMessage]] = []

    async def send_message(self, history, config, on_chunk, on_tool_signal) -> None:
        self.histories.append(list(history))
        half = len(self.answer) // 2
        on_chunk(self.answer[:half])
        on_chunk(self.answer[half:])


def test_plan_prompt_lists_tools() -> None:
    assert "Available tools: search, clock" in build_plan_prompt("t", ["search", "clock"])
    assert "Available tools: none" in build_plan_prompt("t", [])
    assert "Task: summarize the news" in build_plan_prompt("summarize the news", [])


def test_parse_plan_in_prose() -> None:
    text = "Sure, here it is:\n" + json.dumps(
        {
            "steps": [
                {
                    "id": 1,
                    "description": "Search",
                    "toolsRequired": ["search"],
                    "dependencies": [],
                    "estimatedDuration": "15",
                    "extra": "ignored",
                },
                {"description": "  Summarize  ", "dependencies": [1], "expectedOutcome": None},
            ],
            "estimatedDuration": 45,
            "riskAssessment": "HIGH",
        }
    ) + "\nLet me know."

    plan = parse_task_plan(text, "news")

    assert plan is not None
    assert plan.original_task == "news"
    assert plan.risk_assessment == RiskLevel.high
    assert plan.estimated_duration == 45.0
    first, second = plan.steps
    assert first.id == "1"
    assert first.tools_required == ["search"]
    assert first.estimated_duration == 15.0
    assert second.description == "Summarize"
    assert second.dependencies == ["1"]
    assert second.expected_outcome == ""


@pytest.mark.parametrize(
    "text",
    [
        "no json at all",
        '{"steps": []}',
        '{"plan": "none"}',
        '{"steps": "one, two"}',
        '{"steps": [{"description": ""}, "text", {"toolsRequired": ["x"]}]}',
        '{"steps": [',
    ],
)
def test_unusable_plans_fall_back(text: str) -> None:
    assert parse_task_plan(text) is None


def test_unknown_risk_is_medium() -> None:
    plan = parse_task_plan('{"steps": [{"description": "a"}], "riskAssessment": "scary"}')
    assert plan is not None
    assert plan.risk_assessment == RiskLevel.medium
    assert plan.estimated_duration is None


@pytest.mark.asyncio
async def test_planner_replaces_trailing_user_message() -> None:
    model = _FakeModel('{"steps": [{"description": "only step"}]}')
    planner = TaskPlanner(model, ModelCallConfig())
    history = [
        ConversationMessage(role=MessageRole.system, text="sys"),
        ConversationMessage(role=MessageRole.user, text="do the thing"),
    ]

    plan = await planner.plan(history, "do the thing", ["search"])

    assert plan is not None
    assert [s.description for s in plan.steps] == ["only step"]
    sent = model.histories[0]
    assert [m.role for m in sent] == [MessageRole.system, MessageRole.user]
    assert sent[-1].text.startswith("Analyze the following task")
    assert "Task: do the thing" in sent[-1].text
    assert len(history) == 2


@pytest.mark.asyncio
async def test_planner_returns_none_for_simple_tasks() -> None:
    planner = TaskPlanner(_FakeModel('{"steps": []}'), ModelCallConfig())
    assert await planner.plan([], "hi") is None
