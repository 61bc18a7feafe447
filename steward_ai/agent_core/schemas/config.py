"""Run configuration for the agent engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from pydantic import Field

from .base import BaseSchema
from .domain import ApprovalMode

if TYPE_CHECKING:
    from steward_ai.core.config import Settings


class ModelCallConfig(BaseSchema):
    """Parameters handed to the model service on every call."""

    model: str = Field(default="openai:gpt-4o-mini", description="Model identifier (provider:model)")
    temperature: float = Field(default=0.8, description="Sampling temperature (0.0-2.0)")


class AgentConfig(BaseSchema):
    """Complete configuration of one ``AgentEngine``."""

    approval_mode: ApprovalMode = Field(default=ApprovalMode.always_ask, description="Tool approval posture")
    max_tool_calls_per_run: int = Field(
        default=10, ge=0, description="Tool calls allowed per run before approval is forced"
    )
    tool_timeout_seconds: float = Field(default=60.0, gt=0.0, description="Caller-side tool timeout")
    model: ModelCallConfig = Field(default_factory=ModelCallConfig, description="Model settings")
    custom_prompt: Optional[str] = Field(default=None, description="Extra system prompt instructions")
    planning_enabled: bool = Field(default=False, description="Plan before acting on new requests")
    recursion_limit: int = Field(default=100, ge=1, description="Maximum run-loop steps per run")
    max_tool_args_bytes: int = Field(default=64_000, ge=1, description="Upper bound for JSON-encoded tool arguments")
    redact_secrets: bool = Field(default=True, description="Scrub known secret patterns from logs")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "AgentConfig":
        """Build an engine configuration from application settings."""
        return cls(
            approval_mode=ApprovalMode(settings.approval_mode),
            max_tool_calls_per_run=settings.max_tool_calls_per_run,
            tool_timeout_seconds=settings.tool_timeout_seconds,
            model=ModelCallConfig(model=settings.model, temperature=settings.temperature),
            custom_prompt=settings.custom_prompt,
            planning_enabled=settings.planning_enabled,
            recursion_limit=settings.recursion_limit,
        )
