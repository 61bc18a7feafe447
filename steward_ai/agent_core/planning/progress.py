"""Progress tracking for an executing task plan."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from ..schemas.domain import ExecutionResult, ExecutionStep, TaskPlan


@dataclass
class PlanProgress:
    """
    Records how the steps of ``plan`` went.

    ``to_execution_result`` is the only way an ``ExecutionResult`` is built by
    the engine, and it refuses until every step has finished or the plan has
    been marked failed.
    """

    plan: TaskPlan
    clock: Callable[[], float] = time.monotonic
    steps: List[ExecutionStep] = field(default_factory=list)
    failed: bool = False
    _started_at: float = field(default=0.0, init=False)
    _step_started_at: Optional[float] = field(default=None, init=False)
    _current: Optional[int] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self._started_at = self.clock()

    @property
    def completed_steps(self) -> int:
        return len(self.steps)

    @property
    def current_step(self) -> Optional[int]:
        return self._current

    def begin_step(self, index: int) -> None:
        if index < 0 or index >= len(self.plan.steps):
            raise ValueError(f"step index {index} is out of range for a plan of {len(self.plan.steps)} steps")
        self._current = index
        self._step_started_at = self.clock()

    def finish_step(self, success: bool = True, error: Optional[str] = None) -> None:
        if self._current is None or self._step_started_at is None:
            raise ValueError("no plan step is in progress")
        self.steps.append(
            ExecutionStep(
                description=self.plan.steps[self._current].description,
                success=success,
                duration=max(0.0, self.clock() - self._step_started_at),
                error=error,
            )
        )
        self._current = None
        self._step_started_at = None
        if not success:
            self.failed = True

    def mark_failed(self, error: str) -> None:
        """Fail the plan, closing the step in progress if there is one."""
        if self._current is not None:
            self.finish_step(success=False, error=error)
        self.failed = True

    @property
    def is_complete(self) -> bool:
        return not self.failed and len(self.steps) >= len(self.plan.steps)

    def to_execution_result(self) -> ExecutionResult:
        if not (self.is_complete or self.failed):
            raise ValueError(
                f"plan {self.plan.id} is unfinished: {len(self.steps)}/{len(self.plan.steps)} steps executed"
            )
        return ExecutionResult(
            original_task=self.plan.original_task,
            steps=list(self.steps),
            success=not self.failed and all(s.success for s in self.steps),
            duration=max(0.0, self.clock() - self._started_at),
        )
