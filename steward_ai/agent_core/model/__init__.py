"""Language model access.

- ``ModelService``: the streaming contract the run loop depends on.
- ``PydanticAIModelService``: implementation backed by Pydantic AI.
"""

from .base import ModelService, ModelServiceError, OnChunk, OnToolSignal, collect_text
from .pydantic_ai_service import PydanticAIModelService, to_model_messages

__all__ = [
    "ModelService",
    "ModelServiceError",
    "OnChunk",
    "OnToolSignal",
    "collect_text",
    "PydanticAIModelService",
    "to_model_messages",
]
