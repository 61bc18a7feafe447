from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import pytest
from pydantic import BaseModel

from steward_ai.agent_core.memory.service import MemoryService
from steward_ai.agent_core.planning.planner import TaskPlanner
from steward_ai.agent_core.reflection.service import ReflectionService
from steward_ai.agent_core.runtime.engine import AgentEngine
from steward_ai.agent_core.runtime.models import EngineDeps
from steward_ai.agent_core.schemas.config import AgentConfig
from steward_ai.agent_core.schemas.domain import ConversationMessage, ToolCallDescriptor
from steward_ai.agent_core.tools.base import FunctionTool
from steward_ai.agent_core.tools.registry import ToolRegistry


class Turn:
    """One scripted model turn: text chunks plus an optional tool signal or error."""

    def __init__(
        self,
        chunks: Union[str, Sequence[str]] = (),
        *,
        signal: Optional[ToolCallDescriptor] = None,
        error: Optional[Exception] = None,
        block_after: Optional[int] = None,
    ) -> None:
        self.chunks = [chunks] if isinstance(chunks, str) else list(chunks)
        self.signal = signal
        self.error = error
        self.block_after = block_after


class ScriptedModel:
    """Model service replaying scripted turns in order."""

    def __init__(self, turns: Sequence[Union[str, Turn]]) -> None:
        self.turns: List[Turn] = [t if isinstance(t, Turn) else Turn(t) for t in turns]
        self.histories: List[List[ConversationMessage]] = []
        self.chunk_sent = asyncio.Event()

    @property
    def calls(self) -> int:
        return len(self.histories)

    async def send_message(self, history, config, on_chunk, on_tool_signal) -> None:
        self.histories.append(list(history))
        if not self.turns:
            raise AssertionError("model called more often than scripted")
        turn = self.turns.pop(0)
        if turn.error is not None:
            raise turn.error
        for i, chunk in enumerate(turn.chunks):
            if turn.block_after is not None and i == turn.block_after:
                self.chunk_sent.set()
                await asyncio.Event().wait()
            on_chunk(chunk)
            await asyncio.sleep(0)
        if turn.block_after is not None and turn.block_after >= len(turn.chunks):
            self.chunk_sent.set()
            await asyncio.Event().wait()
        if turn.signal is not None:
            on_tool_signal(turn.signal)


class EchoInput(BaseModel):
    text: str = ""


def make_echo_tool(name: str = "echo", *, auto_approval: bool = False, calls: Optional[List[Dict[str, Any]]] = None):
    async def _handler(args: EchoInput) -> str:
        if calls is not None:
            calls.append({"text": args.text})
        return f"echo:{args.text}"

    return FunctionTool(
        name=name,
        description="Echo the given text back",
        input_model=EchoInput,
        handler=_handler,
        auto_approval=auto_approval,
    )


class Recorder:
    def __init__(self) -> None:
        self.states: List[str] = []
        self.messages: List[ConversationMessage] = []

    def on_state(self, state) -> None:
        self.states.append(state.kind)

    def on_message(self, message: ConversationMessage) -> None:
        self.messages.append(message)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def scripted_model() -> Callable[..., ScriptedModel]:
    return ScriptedModel


@pytest.fixture
def turn() -> type:
    return Turn


@pytest.fixture
def echo_tool() -> Callable[..., FunctionTool]:
    return make_echo_tool


@pytest.fixture
def make_engine(recorder: Recorder):
    def _make(
        model: ScriptedModel,
        *,
        tools: Sequence[FunctionTool] = (),
        memory: Optional[MemoryService] = None,
        with_reflection: bool = False,
        with_planner: bool = False,
        **config: Any,
    ) -> AgentEngine:
        cfg = AgentConfig(**config)
        registry = ToolRegistry()
        for tool in tools:
            registry.register(tool)
        reflection = None
        if with_reflection and memory is not None:
            reflection = ReflectionService(model, memory, cfg.model)
        deps = EngineDeps(
            model=model,
            tools=registry,
            memory=memory,
            reflection=reflection,
            planner=TaskPlanner(model, cfg.model) if with_planner else None,
        )
        return AgentEngine(
            config=cfg,
            deps=deps,
            on_state_change=recorder.on_state,
            on_message_added=recorder.on_message,
        )

    return _make
