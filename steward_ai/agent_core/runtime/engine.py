from __future__ import annotations

"""LangGraph runtime engine.

``AgentEngine`` drives one conversation through the agent run loop.

Execution model
---------------

- The engine runs a LangGraph state machine whose only channel is the current
  ``AgentState``. The entry point and every node route through ``_route``,
  which dispatches on the state variant.
- Each node performs the action of exactly one state and moves the engine to
  the next state. Terminal (``Completed``/``Failed``) and suspended
  (``AwaitingApproval``/``AwaitingPlanApproval``) states route to ``END``.
- Every model and tool await goes through the run's ``CancellationToken`` so
  ``cancel`` aborts in-flight work cooperatively.

Streaming
---------

While a model call streams, every chunk re-parses the accumulated text.
Newly completed reasoning / action / self-critique sections are inserted as
their own assistant messages ahead of the streaming placeholder, and the
placeholder shows the current display text. Sections are tracked by
``(kind, offset)`` so re-parsing a growing prefix never emits one twice.

Pause/resume
------------

Approval waits end the graph invocation. ``approve_tool_call`` /
``approve_plan`` start a new invocation from the next state; counters and the
per-thread grant survive because they belong to the run, not the invocation.

Memory
------

At run start the memory context for the latest user message is appended to
the system prompt. Tool results, tool failures and final answers are noted in
working memory. Long-term learnings (plan reflections, failed plans) are
deferred and flushed before ``run`` returns; write failures end up in
``memory_write_errors`` and never change the run's state.
"""

import json
import logging
import time
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple
from uuid import uuid4

from langgraph.errors import GraphRecursionError
from langgraph.graph import END, StateGraph

from ...core.monitoring import log_agent_completion, log_agent_run, log_error, log_llm_call
from ..cancellation import CancellationToken, RunCancelledError
from ..model.base import collect_text
from ..parsing.response_parser import ParsedResponse, ParsedSection, ResponseParser, SectionKind
from ..planning.progress import PlanProgress
from ..policy.approval import decide
from ..policy.models import ApprovalConfig, RunCounters, SafetyPolicy
from ..policy.safety import SafetyGuard
from ..reflection.service import build_execution_review_prompt
from ..schemas.config import AgentConfig
from ..schemas.domain import (
    ConversationMessage,
    ExecutionResult,
    FunctionCall,
    MemoryCategory,
    MessageRole,
    ReflectionInsight,
    ToolCallDescriptor,
    ToolCallProposal,
)
from ..tools.errors import ToolError
from ..tools.invoker import ToolInvoker
from .models import EngineDeps, _GraphState
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
    can_start,
    is_suspended,
    is_terminal,
)

logger = logging.getLogger(__name__)

OnStateChange = Callable[[AgentState], None]
OnMessageAdded = Callable[[ConversationMessage], None]

TOOL_PLACEHOLDER_TEXT = "Using tools..."
NO_RESPONSE_TEXT = "No response was produced."
CANCELLED_NOTICE = "(Cancelled by user)"
EXECUTION_REVIEW_PREFIX = "Execution review:\n"
TOOL_SUMMARY_LIMIT = 500

SECTION_LABELS: Dict[SectionKind, str] = {
    SectionKind.reasoning: "**Reasoning:**",
    SectionKind.action: "**Observation:**",
    SectionKind.critique: "**Self-critique:**",
}

_NODE_FOR_KIND: Dict[str, str] = {
    "planning": "planning",
    "executing_plan": "executing_plan",
    "awaiting_model": "awaiting_model",
    "tool_proposed": "tool_proposed",
    "executing_tool": "executing_tool",
    "reflecting": "reflecting",
}


class AgentEngine:
    """Run the agent loop for one conversation.

    The engine is orchestration-oriented: parsing is delegated to
    ``ResponseParser``, approval to the pure ``policy.approval.decide``, tool
    execution to ``ToolInvoker`` and learning to the memory and reflection
    services in ``EngineDeps``.
    """

    def __init__(
        self,
        *,
        config: AgentConfig,
        deps: EngineDeps,
        on_state_change: Optional[OnStateChange] = None,
        on_message_added: Optional[OnMessageAdded] = None,
        system_prompt_template: str = DEFAULT_SYSTEM_PROMPT,
    ) -> None:
        """
        Initialize the AgentEngine.

        Args:
            config: Approval, limits and model settings for every run.
            deps: The runtime collaborators (model, tools, memory, ...).
            on_state_change: Called with every new ``AgentState``; terminal states are
                reported once deferred memory writes have been flushed.
            on_message_added: Called with every message added to the history.
            system_prompt_template: Template rendered into the leading system message.
        """
        self._config = config
        self._deps = deps
        self._parser = deps.parser or ResponseParser()
        self._guard = deps.guard or SafetyGuard(SafetyPolicy.from_agent_config(config))
        self._invoker = ToolInvoker(deps.tools, guard=self._guard)
        self._template = system_prompt_template
        self.on_state_change = on_state_change
        self.on_message_added = on_message_added

        self._state: AgentState = Idle()
        self._messages: List[ConversationMessage] = []
        self._running = False

        self._run_id = ""
        self._run_started = 0.0
        self._token = CancellationToken()
        self._tool_call_count = 0
        self._thread_granted = False
        self._continuations = 0
        self._was_cancelled = False
        self._progress: Optional[PlanProgress] = None
        self._placeholder: Optional[ConversationMessage] = None
        self._emitted: Set[Tuple[str, int]] = set()
        self._last_tool_result: Optional[Tuple[str, str]] = None
        self._last_reflection: Optional[ReflectionInsight] = None
        self._memory_write_errors: List[BaseException] = []

        self._graph = self._build_graph()

    # ------------------------------------------------------------------
    # accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def deps(self) -> EngineDeps:
        return self._deps

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def messages(self) -> List[ConversationMessage]:
        return list(self._messages)

    @property
    def tool_call_count(self) -> int:
        return self._tool_call_count

    @property
    def thread_granted(self) -> bool:
        return self._thread_granted

    @property
    def was_cancelled(self) -> bool:
        return self._was_cancelled

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def memory_write_errors(self) -> List[BaseException]:
        return list(self._memory_write_errors)

    @property
    def last_reflection(self) -> Optional[ReflectionInsight]:
        return self._last_reflection

    # ------------------------------------------------------------------
    # graph
    # ------------------------------------------------------------------

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        g: StateGraph = StateGraph(_GraphState)
        g.add_node("planning", self._node_planning)
        g.add_node("executing_plan", self._node_executing_plan)
        g.add_node("awaiting_model", self._node_awaiting_model)
        g.add_node("tool_proposed", self._node_tool_proposed)
        g.add_node("executing_tool", self._node_executing_tool)
        g.add_node("reflecting", self._node_reflecting)

        path_map = {name: name for name in _NODE_FOR_KIND.values()}
        path_map[END] = END
        g.set_conditional_entry_point(self._route, path_map)
        for name in _NODE_FOR_KIND.values():
            g.add_conditional_edges(name, self._route, path_map)
        return g.compile()

    def _route(self, state: _GraphState) -> str:
        """Route to the node handling the current state, or END."""
        if self._token.cancelled:
            return END
        return _NODE_FOR_KIND.get(state["state"].kind, END)

    # ------------------------------------------------------------------
    # public operations
    # ------------------------------------------------------------------

    async def start(self, user_text: str) -> AgentState:
        """Append a user message and run.

        Runs from ``Planning`` when planning is enabled and a planner is
        available, otherwise from ``AwaitingModel``.
        """
        if self._running or not can_start(self._state):
            logger.warning(f"start ignored: engine busy in state {self._state.kind}")
            return self._state
        self._append(ConversationMessage(role=MessageRole.user, text=user_text))
        initial: AgentState = (
            Planning() if self._config.planning_enabled and self._deps.planner is not None else AwaitingModel()
        )
        return await self.run(initial)

    async def start_with_history(self, history: Sequence[ConversationMessage]) -> AgentState:
        """Replace the conversation with ``history`` and run from ``AwaitingModel``.

        System messages in ``history`` are dropped; the engine renders its own
        system prompt at run start.
        """
        if self._running or not can_start(self._state):
            logger.warning(f"start_with_history ignored: engine busy in state {self._state.kind}")
            return self._state
        self._messages = [m for m in history if m.role != MessageRole.system]
        return await self.run(AwaitingModel())

    async def run(self, initial_state: AgentState) -> AgentState:
        """
        Run the loop from ``initial_state`` until it ends or suspends.

        Returns the current state unchanged when another run is active or the
        engine sits in a non-startable state.

        Returns:
            The terminal or suspended state the loop settled in.
        """
        if self._running or not can_start(self._state):
            logger.warning(f"run ignored: engine busy in state {self._state.kind}")
            return self._state

        self._reset_run()
        task = self._latest_user_text()
        await self._refresh_system_prompt(task)
        log_agent_run(self._run_id, task, self._config.model.model)
        logger.info(f"Run {self._run_id} started from {initial_state.kind}")
        return await self._drive(initial_state)

    async def approve_tool_call(self) -> AgentState:
        """Approve the pending tool call and resume the run."""
        state = self._require_suspended(AwaitingApproval)
        self._thread_granted = True
        logger.info(f"Run {self._run_id}: tool '{state.proposal.tool_id}' approved")
        return await self._drive(ExecutingTool(proposal=state.proposal))

    async def reject_tool_call(self) -> AgentState:
        """Reject the pending tool call; the run completes without running it."""
        state = self._require_suspended(AwaitingApproval)
        logger.info(f"Run {self._run_id}: tool '{state.proposal.tool_id}' rejected")
        self._transition(Completed())
        await self._finish_run()
        return self._state

    async def approve_plan(self) -> AgentState:
        """Approve the pending plan and execute it from its first step."""
        state = self._require_suspended(AwaitingPlanApproval)
        self._progress = PlanProgress(state.plan)
        logger.info(f"Run {self._run_id}: plan {state.plan.id} approved ({len(state.plan.steps)} steps)")
        return await self._drive(ExecutingPlan(plan=state.plan, step_index=0))

    async def reject_plan(self) -> AgentState:
        """Reject the pending plan; the run completes without executing it."""
        state = self._require_suspended(AwaitingPlanApproval)
        logger.info(f"Run {self._run_id}: plan {state.plan.id} rejected")
        self._transition(Completed())
        await self._finish_run()
        return self._state

    async def cancel(self) -> AgentState:
        """
        Cancel the current run.

        In-flight model and tool awaits are aborted and the active run settles
        in ``Completed``. A suspended run settles immediately.
        """
        if is_terminal(self._state) or isinstance(self._state, Idle):
            return self._state
        logger.info(f"Run {self._run_id}: cancellation requested in state {self._state.kind}")
        self._token.cancel()
        if not self._running and is_suspended(self._state):
            self._settle_cancelled()
            await self._finish_run()
        return self._state

    # ------------------------------------------------------------------
    # loop driver
    # ------------------------------------------------------------------

    async def _drive(self, initial_state: AgentState) -> AgentState:
        self._running = True
        try:
            self._transition(initial_state)
            try:
                await self._graph.ainvoke(
                    {"state": initial_state},
                    config={"recursion_limit": self._config.recursion_limit},
                )
            except RunCancelledError:
                logger.info(f"Run {self._run_id}: in-flight call aborted by cancellation")
            except GraphRecursionError:
                message = f"run exceeded {self._config.recursion_limit} steps"
                logger.error(f"Run {self._run_id}: {message}")
                log_error("GraphRecursionError", message, {"run_id": self._run_id})
                self._close_placeholder()
                self._transition(Failed(message=message))

            if self._token.cancelled and not is_terminal(self._state):
                self._settle_cancelled()
            if is_terminal(self._state):
                await self._finish_run()
        finally:
            self._running = False
        return self._state

    async def _finish_run(self) -> None:
        duration_ms = (time.monotonic() - self._run_started) * 1000.0
        log_agent_completion(self._run_id, self._state.kind, duration_ms, self._tool_call_count)
        logger.info(
            f"Run {self._run_id} finished: state={self._state.kind} tool_calls={self._tool_call_count} "
            f"duration={duration_ms:.0f}ms"
        )
        memory = self._deps.memory
        if memory is not None:
            errors = await memory.flush()
            self._memory_write_errors.extend(errors)
        self._notify_state(self._state)

    def _reset_run(self) -> None:
        self._run_id = str(uuid4())
        self._run_started = time.monotonic()
        self._token = CancellationToken()
        self._tool_call_count = 0
        self._thread_granted = False
        self._continuations = 0
        self._was_cancelled = False
        self._progress = None
        self._placeholder = None
        self._emitted = set()
        self._last_tool_result = None
        self._last_reflection = None
        self._memory_write_errors = []

    def _require_suspended(self, expected: type):
        if self._running or not isinstance(self._state, expected):
            raise ValueError(f"operation requires state {expected.__name__}, engine is in {self._state.kind}")
        return self._state

    # ------------------------------------------------------------------
    # state / history helpers
    # ------------------------------------------------------------------

    def _transition(self, state: AgentState) -> None:
        logger.debug(f"Run {self._run_id}: {self._state.kind} -> {state.kind}")
        self._state = state
        # terminal states are announced by _finish_run after pending memory writes are flushed
        if not is_terminal(state):
            self._notify_state(state)

    def _notify_state(self, state: AgentState) -> None:
        if self.on_state_change is not None:
            self.on_state_change(state)

    def _append(self, message: ConversationMessage) -> None:
        self._messages.append(message)
        if self.on_message_added is not None:
            self.on_message_added(message)

    def _insert_before_placeholder(self, message: ConversationMessage) -> None:
        index = len(self._messages)
        if self._placeholder is not None:
            for i, m in enumerate(self._messages):
                if m.id == self._placeholder.id:
                    index = i
                    break
        self._messages.insert(index, message)
        if self.on_message_added is not None:
            self.on_message_added(message)

    def _history_for_model(self) -> List[ConversationMessage]:
        placeholder_id = self._placeholder.id if self._placeholder is not None else None
        return [m for m in self._messages if m.id != placeholder_id]

    def _latest_user_text(self) -> str:
        for m in reversed(self._messages):
            if m.role == MessageRole.user:
                return m.text
        return ""

    async def _refresh_system_prompt(self, task: str) -> None:
        """Render the system prompt for this run into the leading system message."""
        memory_context = ""
        memory = self._deps.memory
        if memory is not None and task:
            try:
                memory_context = await memory.context_for_task(task)
            except Exception as e:
                logger.warning(f"Run {self._run_id}: memory context unavailable, continuing without it: {e}")
                log_error(type(e).__name__, str(e), {"run_id": self._run_id, "purpose": "memory_context"})
                memory_context = ""
        text = build_system_prompt(
            self._deps.tools.describe(),
            template=self._template,
            custom_prompt=self._config.custom_prompt,
            memory_context=memory_context,
        )
        if self._messages and self._messages[0].role == MessageRole.system:
            self._messages[0] = self._messages[0].model_copy(update={"text": text})
            return
        message = ConversationMessage(role=MessageRole.system, text=text)
        self._messages.insert(0, message)
        if self.on_message_added is not None:
            self.on_message_added(message)

    def _close_placeholder(self) -> None:
        if self._placeholder is not None:
            self._placeholder.is_streaming = False
            self._placeholder = None

    def _settle_cancelled(self) -> None:
        self._was_cancelled = True
        if self._placeholder is not None:
            placeholder = self._placeholder
            placeholder.text = f"{placeholder.text}\n\n{CANCELLED_NOTICE}" if placeholder.text else CANCELLED_NOTICE
            self._close_placeholder()
        else:
            self._append(ConversationMessage(role=MessageRole.assistant, text=CANCELLED_NOTICE))
        if self._progress is not None and not (self._progress.failed or self._progress.is_complete):
            self._progress.mark_failed("cancelled")
        self._transition(Completed())

    def _note(self, category: MemoryCategory, content: str, *tags: str, importance: float = 0.5) -> None:
        memory = self._deps.memory
        if memory is not None:
            memory.note(category, content, tags=tags, importance=importance)

    # ------------------------------------------------------------------
    # nodes
    # ------------------------------------------------------------------

    async def _node_planning(self, state: _GraphState) -> _GraphState:
        """Ask the planner for a plan; no usable plan means direct execution."""
        planner = self._deps.planner
        if planner is None:
            self._transition(AwaitingModel())
            return {"state": self._state}

        task = self._latest_user_text()
        started = time.perf_counter()
        try:
            plan = await self._token.guard(
                planner.plan(self._history_for_model(), task, [t.name for t in self._deps.tools.available()])
            )
        except RunCancelledError:
            raise
        except Exception as e:
            return self._fail_model_call(e, purpose="plan")
        log_llm_call(self._config.model.model, 0, (time.perf_counter() - started) * 1000.0, purpose="plan")

        if plan is None:
            self._transition(AwaitingModel())
        else:
            self._transition(AwaitingPlanApproval(plan=plan))
        return {"state": self._state}

    async def _node_executing_plan(self, state: _GraphState) -> _GraphState:
        """Start the next plan step, or move to reflection when none is left."""
        current = state["state"]
        assert isinstance(current, ExecutingPlan)
        if self._progress is None or self._progress.plan.id != current.plan.id:
            self._progress = PlanProgress(current.plan)

        idx = current.step_index
        if idx >= len(current.plan.steps):
            self._transition(Reflecting(execution_result=self._progress.to_execution_result()))
            return {"state": self._state}

        step = current.plan.steps[idx]
        logger.info(f"Run {self._run_id}: executing plan step {idx + 1}/{len(current.plan.steps)}")
        self._progress.begin_step(idx)
        self._append(ConversationMessage(role=MessageRole.assistant, text=f"Step {idx + 1}: {step.description}"))
        self._transition(AwaitingModel())
        return {"state": self._state}

    async def _node_awaiting_model(self, state: _GraphState) -> _GraphState:
        """Stream one model turn and decide what follows it."""
        history = self._history_for_model()
        placeholder = ConversationMessage(role=MessageRole.assistant, text="", is_streaming=True)
        self._placeholder = placeholder
        self._append(placeholder)
        self._emitted = set()

        chunks: List[str] = []
        signals: List[ToolCallDescriptor] = []

        def on_chunk(delta: str) -> None:
            chunks.append(delta)
            parsed = self._parser.parse("".join(chunks))
            self._emit_sections(parsed.sections)
            placeholder.text = parsed.display_text

        def on_tool_signal(descriptor: ToolCallDescriptor) -> None:
            if not signals:
                signals.append(descriptor)

        started = time.perf_counter()
        try:
            await self._token.guard(
                self._deps.model.send_message(history, self._config.model, on_chunk, on_tool_signal)
            )
        except RunCancelledError:
            raise
        except Exception as e:
            return self._fail_model_call(e, purpose="turn")

        raw = "".join(chunks)
        log_llm_call(self._config.model.model, len(raw), (time.perf_counter() - started) * 1000.0)
        parsed = self._parser.parse(raw, tool_signal=signals[0] if signals else None)
        self._emit_sections(parsed.sections)

        if parsed.tool_proposal is not None:
            self._propose_tool(placeholder, parsed, parsed.tool_proposal)
        elif parsed.wants_continuation and self._can_continue():
            self._continuations += 1
            logger.info(f"Run {self._run_id}: self-critique asked to continue ({self._continuations})")
            self._finalize(placeholder, parsed, raw)
            self._transition(AwaitingModel())
        else:
            text = self._finalize(placeholder, parsed, raw)
            self._note(MemoryCategory.conversation_context, text, "answer")
            self._complete_turn()
        return {"state": self._state}

    async def _node_tool_proposed(self, state: _GraphState) -> _GraphState:
        """Gate the proposal through the approval policy."""
        current = state["state"]
        assert isinstance(current, ToolProposed)
        config = ApprovalConfig.from_agent_config(
            self._config, auto_approved_tools=self._deps.tools.auto_approved_names()
        )
        verdict = decide(
            current.proposal,
            RunCounters(tool_call_count=self._tool_call_count, thread_granted=self._thread_granted),
            config,
        )
        logger.info(
            f"Run {self._run_id}: tool '{current.proposal.tool_id}' "
            f"{'requires approval' if verdict.require_approval else 'approved'} ({verdict.reason})"
        )
        if verdict.require_approval:
            self._transition(AwaitingApproval(proposal=current.proposal))
        else:
            self._transition(ExecutingTool(proposal=current.proposal))
        return {"state": self._state}

    async def _node_executing_tool(self, state: _GraphState) -> _GraphState:
        """Invoke the tool and append its result, or fail the run."""
        current = state["state"]
        assert isinstance(current, ExecutingTool)
        proposal = current.proposal
        self._tool_call_count += 1
        try:
            result = await self._invoker.invoke(
                proposal, timeout=self._config.tool_timeout_seconds, token=self._token
            )
        except ToolError as e:
            message = str(e)
            log_error(type(e).__name__, self._guard.redact(message), {"run_id": self._run_id, "tool": proposal.tool_id})
            self._note(MemoryCategory.error_and_fix, f"Tool {proposal.tool_id} failed: {message}", "tool", "error")
            self._fail_plan(message)
            self._transition(Failed(message=message))
            return {"state": self._state}

        self._append(ConversationMessage(role=MessageRole.tool, text=result, tool_call_id=proposal.call_id))
        self._last_tool_result = (proposal.tool_id, result)
        self._note(
            MemoryCategory.tool_usage_pattern,
            f"Tool {proposal.tool_id} succeeded with input {json.dumps(proposal.input, ensure_ascii=False)}",
            "tool",
            proposal.tool_id,
        )
        self._transition(AwaitingModel())
        return {"state": self._state}

    async def _node_reflecting(self, state: _GraphState) -> _GraphState:
        """Review the executed plan with one model call and finish the run."""
        current = state["state"]
        assert isinstance(current, Reflecting)
        result = current.execution_result
        prompt = ConversationMessage(role=MessageRole.user, text=build_execution_review_prompt(result))

        started = time.perf_counter()
        try:
            analysis = await self._token.guard(
                collect_text(self._deps.model, self._history_for_model() + [prompt], self._config.model)
            )
        except RunCancelledError:
            raise
        except Exception as e:
            return self._fail_model_call(e, purpose="reflection")
        log_llm_call(
            self._config.model.model, len(analysis), (time.perf_counter() - started) * 1000.0, purpose="reflection"
        )

        self._append(ConversationMessage(role=MessageRole.assistant, text=EXECUTION_REVIEW_PREFIX + analysis))
        self._schedule_learning(result, analysis)
        self._transition(Completed())
        return {"state": self._state}

    # ------------------------------------------------------------------
    # node helpers
    # ------------------------------------------------------------------

    def _emit_sections(self, sections: Sequence[ParsedSection]) -> None:
        for section in sections:
            if section.key in self._emitted:
                continue
            self._emitted.add(section.key)
            label = SECTION_LABELS[section.kind]
            self._insert_before_placeholder(
                ConversationMessage(role=MessageRole.assistant, text=f"{label}\n{section.content}")
            )

    def _can_continue(self) -> bool:
        return self._tool_call_count + self._continuations < self._config.max_tool_calls_per_run

    def _propose_tool(
        self, placeholder: ConversationMessage, parsed: ParsedResponse, proposal: ToolCallProposal
    ) -> None:
        placeholder.text = parsed.display_text.strip() or TOOL_PLACEHOLDER_TEXT
        placeholder.tool_calls = [
            ToolCallDescriptor(
                id=proposal.call_id,
                function=FunctionCall(
                    name=proposal.tool_id, arguments=json.dumps(proposal.input, ensure_ascii=False)
                ),
            )
        ]
        self._close_placeholder()
        logger.info(
            f"Run {self._run_id}: tool proposed '{proposal.tool_id}' "
            f"input={self._guard.redact(json.dumps(proposal.input, ensure_ascii=False))}"
        )
        self._transition(ToolProposed(proposal=proposal))

    def _final_text(self, parsed: ParsedResponse, raw: str) -> str:
        text = parsed.display_text.strip()
        if text:
            return text
        if raw.strip():
            return raw.strip()
        if self._last_tool_result is not None:
            tool_id, result = self._last_tool_result
            summary = result if len(result) <= TOOL_SUMMARY_LIMIT else result[:TOOL_SUMMARY_LIMIT] + "..."
            return f"Result of {tool_id}:\n{summary}"
        return NO_RESPONSE_TEXT

    def _finalize(self, placeholder: ConversationMessage, parsed: ParsedResponse, raw: str) -> str:
        text = self._final_text(parsed, raw)
        placeholder.text = text
        self._close_placeholder()
        return text

    def _complete_turn(self) -> None:
        """Finish the current plan step, or the run when no plan is executing."""
        progress = self._progress
        if progress is not None and progress.current_step is not None:
            idx = progress.current_step
            progress.finish_step(success=True)
            self._transition(ExecutingPlan(plan=progress.plan, step_index=idx + 1))
            return
        self._transition(Completed())

    def _fail_model_call(self, error: Exception, *, purpose: str) -> _GraphState:
        message = f"Model call failed: {error}"
        logger.error(f"Run {self._run_id}: {purpose} call failed: {error}", exc_info=True)
        log_error(type(error).__name__, str(error), {"run_id": self._run_id, "purpose": purpose})
        self._close_placeholder()
        self._fail_plan(message)
        self._transition(Failed(message=message))
        return {"state": self._state}

    def _fail_plan(self, message: str) -> None:
        """Mark an executing plan failed and schedule the failure learning."""
        progress = self._progress
        if progress is None or progress.failed or progress.is_complete:
            return
        progress.mark_failed(message)
        memory = self._deps.memory
        if memory is not None:
            result = progress.to_execution_result()
            memory.defer(memory.learn_from_execution(result.original_task, result, [message]))

    def _schedule_learning(self, result: ExecutionResult, analysis: str) -> None:
        memory = self._deps.memory
        reflection = self._deps.reflection
        insights: List[str] = []
        if reflection is not None:
            insight = reflection.derive(result, analysis)
            self._last_reflection = insight
            insights = [i.title for i in insight.initial_insights]
            if memory is not None:
                memory.defer(reflection.store_learnings(insight))
        if memory is not None:
            memory.defer(memory.learn_from_execution(result.original_task, result, insights))
