"""
Configuration Settings.

This module defines the application configuration using Pydantic's BaseSettings.
It automatically loads all configuration from environment variables and .env file
without explicit dotenv loading.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings model.

    All properties are automatically bound from environment variables and .env file.
    Pydantic's BaseSettings handles dotenv loading automatically via model_config.
    """

    # =====================================================================
    # Pydantic Configuration
    # =====================================================================
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=True,
    )

    # =====================================================================
    # Logging Configuration
    # =====================================================================
    log_level: str = Field(
        default="INFO",
        description="Steward-AI logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
        alias="STEWARD_AI_LOG_LEVEL",
    )
    log_format: str = Field(
        default="detailed",
        description="Log line format (simple, detailed, json)",
        alias="STEWARD_AI_LOG_FORMAT",
    )
    log_file_dir: str = Field(
        default="logs",
        description="Directory for the log file when file logging is enabled",
        alias="STEWARD_AI_LOG_FILE_DIR",
    )
    enable_file_logging: bool = Field(
        default=False,
        description="Write a log file in addition to console output",
        alias="STEWARD_AI_ENABLE_FILE_LOGGING",
    )

    # =====================================================================
    # Agent Configuration
    # =====================================================================
    model: str = Field(
        default="openai:gpt-4o-mini",
        description="pydantic-ai model identifier (provider:model)",
        alias="STEWARD_AI_MODEL",
    )
    temperature: float = Field(
        default=0.8,
        description="Sampling temperature for model calls",
        alias="STEWARD_AI_TEMPERATURE",
    )
    approval_mode: str = Field(
        default="always_ask",
        description="Approval mode (always_ask, per_thread, auto_approve)",
        alias="STEWARD_AI_APPROVAL_MODE",
    )
    max_tool_calls_per_run: int = Field(
        default=10,
        description="Tool calls allowed per run before approval is forced",
        alias="STEWARD_AI_MAX_TOOL_CALLS_PER_RUN",
    )
    tool_timeout_seconds: float = Field(
        default=60.0,
        description="Caller-side timeout applied to every tool execution",
        alias="STEWARD_AI_TOOL_TIMEOUT_SECONDS",
    )
    custom_prompt: Optional[str] = Field(
        default=None,
        description="Extra instructions appended to the system prompt",
        alias="STEWARD_AI_CUSTOM_PROMPT",
    )
    planning_enabled: bool = Field(
        default=False,
        description="Ask the model for a task plan before executing a new request",
        alias="STEWARD_AI_PLANNING_ENABLED",
    )
    recursion_limit: int = Field(
        default=100,
        description="Maximum number of run-loop steps per run",
        alias="STEWARD_AI_RECURSION_LIMIT",
    )

    # =====================================================================
    # Memory Configuration
    # =====================================================================
    memory_database_url: Optional[str] = Field(
        default=None,
        description="Async SQLAlchemy URL for long-term memory; in-memory store when unset",
        alias="STEWARD_AI_MEMORY_DATABASE_URL",
    )


settings = Settings()
