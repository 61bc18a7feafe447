"""
Core utilities and configuration for Steward-AI.

This package provides core functionality including settings, logging
configuration and tracing helpers.
"""

from steward_ai.core.logging_config import get_logger, setup_logging

__all__ = ["get_logger", "setup_logging"]
