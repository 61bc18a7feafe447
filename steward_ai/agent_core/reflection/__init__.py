"""Reflection over executed plans and learning write-back."""

from .service import (
    DEFAULT_PRIORITY_THRESHOLD,
    ReflectionService,
    build_execution_review_prompt,
    parse_insights,
    parse_patterns,
    parse_recommendations,
    recommendation_priority,
)

__all__ = [
    "DEFAULT_PRIORITY_THRESHOLD",
    "ReflectionService",
    "build_execution_review_prompt",
    "parse_insights",
    "parse_patterns",
    "parse_recommendations",
    "recommendation_priority",
]
