from __future__ import annotations

"""Reflection over executed plans.

``ReflectionService`` turns an ``ExecutionResult`` into a
``ReflectionInsight`` and writes the valuable parts back into long-term
memory:

- ``reflect``: full analysis with three model calls (insights, patterns
  against similar past tasks, recommendations).
- ``quick_reflect``: one short model call returning at most three findings.
- ``derive``: no model call, parses an analysis the run loop already obtained.
- ``store_learnings``: recommendations whose priority reaches the threshold
  become task-learning entries; pattern analysis becomes one domain-knowledge
  entry.

Model answers are read as numbered lists (``1. Title`` followed by
description lines).
"""

import logging
import re
from typing import List, Optional, Tuple

from ..memory.service import MemoryService
from ..model.base import ModelService, collect_text
from ..schemas.config import ModelCallConfig
from ..schemas.domain import (
    ConversationMessage,
    ExecutionResult,
    Insight,
    MemoryCategory,
    MemoryEntry,
    MessageRole,
    Pattern,
    Recommendation,
    ReflectionInsight,
)

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY_THRESHOLD = 0.7
DEFAULT_RECOMMENDATION_PRIORITY = 0.7
HIGH_PRIORITY = 0.9
LOW_PRIORITY = 0.4

_NUMBERED_RE = re.compile(r"^\d+\.\s*(.*)$")
_PRIORITY_RE = re.compile(r"priority\s*[:=]\s*([01](?:\.\d+)?)", re.IGNORECASE)
_HIGH_WORDS = ("high priority", "critical", "urgent", "must")
_LOW_WORDS = ("low priority", "minor", "nice to have", "optional")
_RECOMMENDATION_CATEGORIES = (
    ("tool", "tool_usage"),
    ("efficien", "efficiency"),
    ("faster", "efficiency"),
    ("quality", "quality"),
    ("prevent", "prevention"),
    ("risk", "prevention"),
)
_QUICK_SKIP_PREFIXES = ("task:", "duration:", "success:", "steps:")


def _steps_block(result: ExecutionResult, with_duration: bool = False) -> str:
    lines = []
    for i, step in enumerate(result.steps):
        line = f"Step {i + 1}: {step.description}"
        if with_duration:
            line += f" - {step.duration:.2f}s"
        if not step.success:
            line += " (failed)"
        lines.append(line)
    return "\n".join(lines) if lines else "(no steps)"


def build_execution_review_prompt(result: ExecutionResult) -> str:
    """Prompt for the single analysis call the run loop makes after a plan."""
    return (
        "Review the following task execution and analyse what could be improved.\n\n"
        f"Task: {result.original_task}\n"
        f"Duration: {result.duration:.1f}s\n"
        f"Success: {'yes' if result.success else 'no'}\n\n"
        f"Executed steps:\n{_steps_block(result)}\n\n"
        "Analyse it from these angles, as a numbered list:\n"
        "1. Efficiency: was there a better way?\n"
        "2. Completeness: were all necessary steps executed?\n"
        "3. Safety: were risks handled appropriately?\n"
        "4. Learnings: what should be reused for similar tasks next time?\n\n"
        "Keep the analysis concise."
    )


def _numbered_items(text: str) -> List[Tuple[str, str]]:
    items: List[Tuple[str, str]] = []
    title: Optional[str] = None
    description: List[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        match = _NUMBERED_RE.match(stripped)
        if match:
            if title is not None:
                items.append((title, " ".join(description)))
            title = match.group(1).strip()
            description = []
        elif title is not None:
            description.append(stripped)
    if title is not None:
        items.append((title, " ".join(description)))
    return items


def parse_insights(text: str, category: str = "initial_analysis") -> List[Insight]:
    return [Insight(title=t, description=d, category=category) for t, d in _numbered_items(text)]


def parse_patterns(text: str) -> List[Pattern]:
    return [Pattern(description=line.strip(), trend="stable") for line in text.splitlines() if line.strip()]


def recommendation_priority(text: str) -> float:
    """
    Priority of a recommendation read from its text.

    An explicit ``priority: x`` wins; otherwise high or low keywords shift the
    default.
    """
    match = _PRIORITY_RE.search(text)
    if match:
        return min(1.0, max(0.0, float(match.group(1))))
    lowered = text.lower()
    if any(w in lowered for w in _HIGH_WORDS):
        return HIGH_PRIORITY
    if any(w in lowered for w in _LOW_WORDS):
        return LOW_PRIORITY
    return DEFAULT_RECOMMENDATION_PRIORITY


def _recommendation_category(text: str) -> str:
    lowered = text.lower()
    for keyword, category in _RECOMMENDATION_CATEGORIES:
        if keyword in lowered:
            return category
    return "process"


def parse_recommendations(text: str) -> List[Recommendation]:
    recommendations = []
    for title, description in _numbered_items(text):
        full = f"{title} {description}"
        recommendations.append(
            Recommendation(
                title=title,
                description=description,
                category=_recommendation_category(full),
                priority=recommendation_priority(full),
            )
        )
    return recommendations


class ReflectionService:
    """Analyse executions and feed the learnings back into memory."""

    def __init__(
        self,
        model_service: ModelService,
        memory: MemoryService,
        model_config: ModelCallConfig,
        priority_threshold: float = DEFAULT_PRIORITY_THRESHOLD,
    ) -> None:
        self._model = model_service
        self._memory = memory
        self._config = model_config
        self.priority_threshold = priority_threshold

    async def _ask(self, prompt: str) -> str:
        return await collect_text(
            self._model,
            [ConversationMessage(role=MessageRole.user, text=prompt)],
            self._config,
        )

    async def reflect(self, result: ExecutionResult) -> ReflectionInsight:
        """Run the full analysis and store what it teaches."""
        logger.info(f"Reflecting on execution: task={result.original_task!r} success={result.success}")
        insights = await self._initial_insights(result)
        patterns = await self._analyze_patterns(result)
        recommendations = await self._recommendations(result, insights)

        insight = ReflectionInsight(
            execution_result=result,
            initial_insights=insights,
            pattern_analysis=patterns,
            recommendations=recommendations,
        )
        await self.store_learnings(insight)
        return insight

    async def quick_reflect(self, result: ExecutionResult) -> List[str]:
        prompt = (
            "Briefly review the following task execution and list at most three key findings.\n\n"
            f"Task: {result.original_task}\n"
            f"Duration: {result.duration:.1f}s\n"
            f"Success: {'yes' if result.success else 'no'}\n"
            f"Steps: {len(result.steps)}"
        )
        text = await self._ask(prompt)
        findings = [
            line.strip()
            for line in text.splitlines()
            if line.strip() and not line.strip().lower().startswith(_QUICK_SKIP_PREFIXES)
        ]
        return findings[:3]

    def derive(self, result: ExecutionResult, analysis_text: str) -> ReflectionInsight:
        """Build a reflection from an analysis obtained elsewhere, without a model call."""
        return ReflectionInsight(
            execution_result=result,
            initial_insights=parse_insights(analysis_text, category="execution_review"),
            pattern_analysis=[],
            recommendations=parse_recommendations(analysis_text),
        )

    async def store_learnings(self, insight: ReflectionInsight) -> List[MemoryEntry]:
        """
        Write the valuable parts of ``insight`` to long-term memory.

        Returns:
            The entries that were stored.
        """
        result = insight.execution_result
        outcome = "success" if result.success else "failure"
        task_type = result.original_task.split(" ")[0] if result.original_task.strip() else "general task"
        stored: List[MemoryEntry] = []

        for rec in insight.recommendations:
            if rec.priority < self.priority_threshold:
                continue
            entry = MemoryEntry(
                category=MemoryCategory.task_learning,
                content=(
                    f"Task type: {task_type}\n"
                    f"Improvement: {rec.title}\n"
                    f"Details: {rec.description}\n"
                    f"Impact: {rec.impact:.1f}"
                ),
                tags=["reflection", "improvement", outcome],
                importance=rec.priority,
            )
            await self._memory.store_long_term(entry)
            stored.append(entry)

        if insight.pattern_analysis:
            entry = MemoryEntry(
                category=MemoryCategory.domain_knowledge,
                content=(
                    f"Task: {result.original_task}\n"
                    f"Patterns: {'; '.join(p.description for p in insight.pattern_analysis)}\n"
                    f"Insights: {'; '.join(i.description for i in insight.initial_insights)}"
                ),
                tags=["pattern", "analysis"],
                importance=0.6,
            )
            await self._memory.store_long_term(entry)
            stored.append(entry)

        logger.debug(f"Stored {len(stored)} learnings from reflection {insight.id}")
        return stored

    async def _initial_insights(self, result: ExecutionResult) -> List[Insight]:
        prompt = (
            "Analyse the following task execution and produce detailed insights.\n\n"
            f"Task: {result.original_task}\n"
            f"Duration: {result.duration:.2f}s\n"
            f"Result: {'success' if result.success else 'failure'}\n\n"
            f"Executed steps:\n{_steps_block(result, with_duration=True)}\n\n"
            "Answer as a numbered list covering:\n"
            "1. Efficiency\n2. Effectiveness\n3. Safety\n4. Completeness\n5. Adaptability"
        )
        return parse_insights(await self._ask(prompt))

    async def _analyze_patterns(self, result: ExecutionResult) -> List[Pattern]:
        history = await self._memory.search_long_term(result.original_task, 5)
        if not history:
            return []
        past = "\n".join(f"- {e.content}" for e in history)
        prompt = (
            "Compare the current task execution with similar past executions and describe the patterns.\n\n"
            f"Current task: {result.original_task}\n"
            f"Current duration: {result.duration:.2f}s\n"
            f"Current step count: {len(result.steps)}\n\n"
            f"Past executions:\n{past}\n\n"
            "Describe trends in duration, step count and success rate, recurring problems "
            "and solutions that worked."
        )
        return parse_patterns(await self._ask(prompt))

    async def _recommendations(self, result: ExecutionResult, insights: List[Insight]) -> List[Recommendation]:
        findings = "\n".join(f"- {i.title}: {i.description}" for i in insights) or "(none)"
        prompt = (
            "Based on the analysis below, propose concrete improvements as a numbered list.\n\n"
            f"Task: {result.original_task}\n"
            f"Duration: {result.duration:.2f}s\n\n"
            f"Analysis:\n{findings}\n\n"
            "Cover process, tool usage, efficiency, quality and prevention. "
            "Mark each item with 'priority: <0.0-1.0>'."
        )
        return parse_recommendations(await self._ask(prompt))
