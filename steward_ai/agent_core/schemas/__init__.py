"""Schemas and DTOs for the agent core."""

from .base import BaseSchema, FrozenSchema
from .config import AgentConfig, ModelCallConfig
from .domain import (
    ApprovalMode,
    ConversationMessage,
    ExecutionResult,
    ExecutionStep,
    FunctionCall,
    Insight,
    MemoryCategory,
    MemoryEntry,
    MessageRole,
    Pattern,
    PlanStep,
    Recommendation,
    ReflectionInsight,
    RiskLevel,
    TaskPlan,
    ToolCallDescriptor,
    ToolCallProposal,
)

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "AgentConfig",
    "ModelCallConfig",
    "ApprovalMode",
    "ConversationMessage",
    "ExecutionResult",
    "ExecutionStep",
    "FunctionCall",
    "Insight",
    "MemoryCategory",
    "MemoryEntry",
    "MessageRole",
    "Pattern",
    "PlanStep",
    "Recommendation",
    "ReflectionInsight",
    "RiskLevel",
    "TaskPlan",
    "ToolCallDescriptor",
    "ToolCallProposal",
]
