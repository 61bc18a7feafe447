"""Pydantic AI model service.

``PydanticAIModelService`` implements ``ModelService`` on top of a Pydantic AI
``Agent``: the conversation history is converted to Pydantic AI messages and
text deltas from ``run_stream`` are forwarded to ``on_chunk``.

Tool calls are expected in the text (the system prompt describes the JSON
envelope), so the agent is created without native tools and the out-of-band
tool channel is never used by this adapter.
"""

from typing import Any, List, Optional, Sequence, Tuple

from pydantic_ai import Agent
from pydantic_ai.messages import (
    ModelMessage,
    ModelRequest,
    ModelResponse,
    SystemPromptPart,
    TextPart,
    UserPromptPart,
)

from steward_ai.core.logging_config import get_logger

from ..schemas.config import ModelCallConfig
from ..schemas.domain import ConversationMessage, MessageRole
from .base import ModelServiceError, OnChunk, OnToolSignal

logger = get_logger(__name__)

CONTINUE_PROMPT = "Continue."


def _tool_result_text(message: ConversationMessage) -> str:
    return f"Tool result ({message.tool_call_id or 'unknown call'}):\n{message.text}"


def to_model_messages(history: Sequence[ConversationMessage]) -> Tuple[List[ModelMessage], str]:
    """Split history into Pydantic AI message history and the prompt to send.

    The trailing user or tool message becomes the prompt. When the history
    ends with an assistant message, a short continuation prompt is sent.
    """
    messages = list(history)
    prompt = CONTINUE_PROMPT
    if messages and messages[-1].role == MessageRole.user:
        prompt = messages.pop().text
    elif messages and messages[-1].role == MessageRole.tool:
        prompt = _tool_result_text(messages.pop())

    converted: List[ModelMessage] = []
    for m in messages:
        if m.role == MessageRole.system:
            converted.append(ModelRequest(parts=[SystemPromptPart(content=m.text)]))
        elif m.role == MessageRole.user:
            converted.append(ModelRequest(parts=[UserPromptPart(content=m.text)]))
        elif m.role == MessageRole.tool:
            converted.append(ModelRequest(parts=[UserPromptPart(content=_tool_result_text(m))]))
        elif m.text:
            converted.append(ModelResponse(parts=[TextPart(content=m.text)]))
    return converted, prompt


class PydanticAIModelService:
    """Stream model turns through a Pydantic AI ``Agent``.

    Attributes:
        _model: Pydantic AI model instance overriding ``ModelCallConfig.model``
            (e.g. ``TestModel`` in tests); ``None`` uses the configured identifier.
    """

    def __init__(self, model: Optional[Any] = None) -> None:
        self._model = model
        self._agents: dict[str, Agent] = {}

    def _agent_for(self, config: ModelCallConfig) -> Agent:
        key = "__instance__" if self._model is not None else config.model
        agent = self._agents.get(key)
        if agent is None:
            agent = Agent(self._model if self._model is not None else config.model)
            self._agents[key] = agent
        return agent

    async def send_message(
        self,
        history: Sequence[ConversationMessage],
        config: ModelCallConfig,
        on_chunk: OnChunk,
        on_tool_signal: OnToolSignal,
    ) -> None:
        message_history, prompt = to_model_messages(history)
        try:
            agent = self._agent_for(config)
            async with agent.run_stream(
                prompt,
                message_history=message_history or None,
                model_settings={"temperature": config.temperature},
            ) as result:
                async for delta in result.stream_text(delta=True):
                    if delta:
                        on_chunk(delta)
        except Exception as e:
            logger.error(f"Pydantic AI streaming failed: model={config.model}: {e}", exc_info=True)
            raise ModelServiceError(str(e)) from e
