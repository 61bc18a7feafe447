from __future__ import annotations

"""Model service contract.

The run loop talks to a language model only through ``ModelService``. A call
streams text chunks through ``on_chunk`` and may deliver a structured tool call
through ``on_tool_signal``; it completes when the stream is exhausted and
raises on transport failure.
"""

from typing import Callable, List, Protocol, Sequence

from ..schemas.config import ModelCallConfig
from ..schemas.domain import ConversationMessage, ToolCallDescriptor

OnChunk = Callable[[str], None]
OnToolSignal = Callable[[ToolCallDescriptor], None]


class ModelServiceError(Exception):
    """Raised by model services for transport or provider failures."""


class ModelService(Protocol):
    """Streaming chat-completion interface."""

    async def send_message(
        self,
        history: Sequence[ConversationMessage],
        config: ModelCallConfig,
        on_chunk: OnChunk,
        on_tool_signal: OnToolSignal,
    ) -> None:
        """
        Stream one model turn over ``history``.

        Args:
            history: Full conversation to send, oldest first.
            config: Model identifier and sampling parameters.
            on_chunk: Called with every text delta, in order.
            on_tool_signal: Called when the provider reports a structured tool call.
        """
        ...


async def collect_text(
    service: ModelService,
    history: Sequence[ConversationMessage],
    config: ModelCallConfig,
) -> str:
    """Run one call and return the concatenated text; tool signals are ignored."""
    chunks: List[str] = []
    await service.send_message(history, config, chunks.append, lambda _signal: None)
    return "".join(chunks)
