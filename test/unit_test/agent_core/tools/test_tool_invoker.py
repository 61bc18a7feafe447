from __future__ import annotations

import asyncio

import pytest
from pydantic import BaseModel

from steward_ai.agent_core.cancellation import CancellationToken, RunCancelledError
from steward_ai.agent_core.policy.models import SafetyPolicy
from steward_ai.agent_core.policy.safety import SafetyGuard
from steward_ai.agent_core.schemas.domain import ToolCallProposal
from steward_ai.agent_core.tools.base import FunctionTool
from steward_ai.agent_core.tools.errors import (
    InvalidToolArgumentsError,
    ToolDisabledError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from steward_ai.agent_core.tools.invoker import ToolInvoker
from steward_ai.agent_core.tools.registry import ToolRegistry


class Args(BaseModel):
    value: str = ""


async def _ok(args: Args) -> str:
    return f"ok:{args.value}"


async def _slow(args: Args) -> str:
    await asyncio.sleep(10)
    return "late"


async def _boom(args: Args) -> str:
    raise RuntimeError("kaput")


async def _tool_error(args: Args) -> str:
    raise ToolExecutionError("custom", "domain failure")


async def _own_timeout(args: Args) -> str:
    raise TimeoutError("upstream read timed out")


async def _number(args: Args) -> int:
    return 42


def _invoker(guard: SafetyGuard = None) -> ToolInvoker:
    reg = ToolRegistry()
    for name, handler in [("ok", _ok), ("slow", _slow), ("boom", _boom), ("custom", _tool_error), ("num", _number), ("upstream", _own_timeout)]:
        reg.register(FunctionTool(name, name, Args, handler))
    reg.register(FunctionTool("off", "off", Args, _ok), enabled=False)
    return ToolInvoker(reg, guard=guard)


def _call(tool_id: str, **input) -> ToolCallProposal:
    return ToolCallProposal(tool_id=tool_id, input=input)


@pytest.mark.asyncio
async def test_invoke_returns_result() -> None:
    assert await _invoker().invoke(_call("ok", value="x"), timeout=1) == "ok:x"
    assert await _invoker().invoke(_call("num"), timeout=1) == "42"


@pytest.mark.asyncio
async def test_unknown_tool() -> None:
    with pytest.raises(ToolNotFoundError, match="Tool 'nope' not found"):
        await _invoker().invoke(_call("nope"), timeout=1)


@pytest.mark.asyncio
async def test_disabled_tool() -> None:
    with pytest.raises(ToolDisabledError):
        await _invoker().invoke(_call("off"), timeout=1)


@pytest.mark.asyncio
async def test_timeout_is_enforced_by_caller() -> None:
    with pytest.raises(ToolTimeoutError) as exc:
        await _invoker().invoke(_call("slow"), timeout=0.05)
    assert str(exc.value) == "Tool 'slow' timed out after 0.05s"
    assert exc.value.timeout == 0.05


@pytest.mark.asyncio
async def test_timeout_raised_by_tool_is_an_execution_failure() -> None:
    with pytest.raises(ToolExecutionError) as exc:
        await _invoker().invoke(_call("upstream"), timeout=5)
    assert not isinstance(exc.value, ToolTimeoutError)
    assert str(exc.value) == "Tool 'upstream' failed: upstream read timed out"
    assert isinstance(exc.value.__cause__, TimeoutError)


@pytest.mark.asyncio
async def test_unexpected_exception_is_wrapped() -> None:
    with pytest.raises(ToolExecutionError) as exc:
        await _invoker().invoke(_call("boom"), timeout=1)
    assert str(exc.value) == "Tool 'boom' failed: kaput"
    assert isinstance(exc.value.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_tool_errors_pass_through() -> None:
    with pytest.raises(ToolError, match="domain failure"):
        await _invoker().invoke(_call("custom"), timeout=1)


@pytest.mark.asyncio
async def test_oversized_arguments_are_refused() -> None:
    invoker = _invoker(SafetyGuard(SafetyPolicy(max_tool_args_bytes=16)))
    with pytest.raises(InvalidToolArgumentsError):
        await invoker.invoke(_call("ok", value="x" * 64), timeout=1)


@pytest.mark.asyncio
async def test_cancellation_interrupts_execution() -> None:
    token = CancellationToken()
    task = asyncio.ensure_future(_invoker().invoke(_call("slow"), timeout=5, token=token))
    await asyncio.sleep(0.01)
    token.cancel()
    with pytest.raises(RunCancelledError):
        await task
