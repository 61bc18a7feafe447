from __future__ import annotations

from typing import AsyncIterator, List

import pytest
from pydantic_ai.messages import ModelMessage, ModelRequest, ModelResponse, SystemPromptPart, TextPart, UserPromptPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from steward_ai.agent_core.model.base import ModelServiceError, collect_text
from steward_ai.agent_core.model.pydantic_ai_service import (
    CONTINUE_PROMPT,
    PydanticAIModelService,
    to_model_messages,
)
from steward_ai.agent_core.schemas.config import ModelCallConfig
from steward_ai.agent_core.schemas.domain import ConversationMessage, MessageRole


def _msg(role: MessageRole, text: str, **kw) -> ConversationMessage:
    return ConversationMessage(role=role, text=text, **kw)


def test_trailing_user_message_becomes_prompt() -> None:
    history = [
        _msg(MessageRole.system, "sys"),
        _msg(MessageRole.user, "first"),
        _msg(MessageRole.assistant, "reply"),
        _msg(MessageRole.assistant, ""),
        _msg(MessageRole.user, "second"),
    ]

    converted, prompt = to_model_messages(history)

    assert prompt == "second"
    assert len(converted) == 3
    assert isinstance(converted[0], ModelRequest)
    assert isinstance(converted[0].parts[0], SystemPromptPart)
    assert isinstance(converted[1].parts[0], UserPromptPart)
    assert isinstance(converted[2], ModelResponse)
    assert isinstance(converted[2].parts[0], TextPart)
    assert converted[2].parts[0].content == "reply"


def test_trailing_tool_message_becomes_prompt() -> None:
    history = [_msg(MessageRole.user, "q"), _msg(MessageRole.tool, "42", tool_call_id="call-1")]

    converted, prompt = to_model_messages(history)

    assert prompt == "Tool result (call-1):\n42"
    assert len(converted) == 1


def test_trailing_assistant_message_sends_continuation() -> None:
    converted, prompt = to_model_messages([_msg(MessageRole.user, "q"), _msg(MessageRole.assistant, "step")])
    assert prompt == CONTINUE_PROMPT
    assert len(converted) == 2


@pytest.mark.asyncio
async def test_streams_text_deltas() -> None:
    seen: List[List[ModelMessage]] = []

    async def stream(messages: List[ModelMessage], info: AgentInfo) -> AsyncIterator[str]:
        seen.append(list(messages))
        yield "Hello "
        yield "world"

    service = PydanticAIModelService(FunctionModel(stream_function=stream))
    chunks: List[str] = []
    signals = []

    await service.send_message(
        [_msg(MessageRole.system, "sys"), _msg(MessageRole.user, "hi")],
        ModelCallConfig(),
        chunks.append,
        signals.append,
    )

    assert "".join(chunks) == "Hello world"
    assert signals == []
    last_request = seen[0][-1]
    assert isinstance(last_request, ModelRequest)
    assert any(isinstance(p, UserPromptPart) and p.content == "hi" for p in last_request.parts)


@pytest.mark.asyncio
async def test_collect_text_over_pydantic_ai() -> None:
    async def stream(messages: List[ModelMessage], info: AgentInfo) -> AsyncIterator[str]:
        yield '{"steps": []}'

    service = PydanticAIModelService(FunctionModel(stream_function=stream))
    assert await collect_text(service, [_msg(MessageRole.user, "plan")], ModelCallConfig()) == '{"steps": []}'


@pytest.mark.asyncio
async def test_provider_failure_is_wrapped() -> None:
    async def stream(messages: List[ModelMessage], info: AgentInfo) -> AsyncIterator[str]:
        raise RuntimeError("provider down")
        yield ""  # pragma: no cover

    service = PydanticAIModelService(FunctionModel(stream_function=stream))

    with pytest.raises(ModelServiceError, match="provider down"):
        await service.send_message([_msg(MessageRole.user, "hi")], ModelCallConfig(), lambda _c: None, lambda _s: None)
