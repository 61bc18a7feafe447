"""
Monitoring and Tracing Configuration Module.

This module provides integration with Pydantic Logfire for monitoring and
tracing of agent operations, including:
- Agent run lifecycle (start, terminal state, duration)
- LLM model calls
- Tool invocations
- Error tracking

Every helper degrades to a debug log line when Logfire is not configured, so
callers never need to guard their calls.
"""

import logging
import os
from typing import Any, Optional

logger = logging.getLogger(__name__)

# Logfire configuration from environment
LOGFIRE_ENABLED = os.getenv("LOGFIRE_ENABLED", "false").lower() in ("true", "1", "yes")
LOGFIRE_TOKEN = os.getenv("LOGFIRE_TOKEN", "")
LOGFIRE_PROJECT_NAME = os.getenv("LOGFIRE_PROJECT_NAME", "steward-ai")
LOGFIRE_ENVIRONMENT = os.getenv("LOGFIRE_ENVIRONMENT", "development")
LOGFIRE_SERVICE_NAME = os.getenv("LOGFIRE_SERVICE_NAME", "steward-ai-engine")
LOGFIRE_SERVICE_VERSION = os.getenv("LOGFIRE_SERVICE_VERSION", "0.1.0")

# Sampling configuration
LOGFIRE_SAMPLE_RATE = float(os.getenv("LOGFIRE_SAMPLE_RATE", "1.0"))
LOGFIRE_TRACE_SAMPLE_RATE = float(os.getenv("LOGFIRE_TRACE_SAMPLE_RATE", "1.0"))

# Feature flags
LOGFIRE_TRACE_PYDANTIC_AI = os.getenv("LOGFIRE_TRACE_PYDANTIC_AI", "true").lower() in ("true", "1", "yes")
LOGFIRE_TRACE_SQLALCHEMY = os.getenv("LOGFIRE_TRACE_SQLALCHEMY", "true").lower() in ("true", "1", "yes")


def initialize_logfire() -> None:
    """
    Initialize Pydantic Logfire for monitoring and tracing.

    This function sets up Logfire with automatic instrumentation for:
    - Pydantic AI model calls
    - SQLAlchemy database operations (long-term memory store)

    The initialization is conditional based on LOGFIRE_ENABLED environment variable.
    """
    if not LOGFIRE_ENABLED:
        logger.info("Logfire monitoring is disabled. Set LOGFIRE_ENABLED=true to enable.")
        return

    if not LOGFIRE_TOKEN:
        logger.warning(
            "Logfire is enabled but LOGFIRE_TOKEN is not set. "
            "Monitoring will not work. Set LOGFIRE_TOKEN to enable Logfire."
        )
        return

    try:
        import logfire
        from logfire import SamplingOptions

        logfire.configure(
            token=LOGFIRE_TOKEN,
            service_name=LOGFIRE_SERVICE_NAME,
            service_version=LOGFIRE_SERVICE_VERSION,
            environment=LOGFIRE_ENVIRONMENT,
            sampling=SamplingOptions(
                head=LOGFIRE_SAMPLE_RATE,
                tail=LOGFIRE_TRACE_SAMPLE_RATE,
            ),
        )

        if LOGFIRE_TRACE_PYDANTIC_AI:
            try:
                logfire.instrument_pydantic_ai()
                logger.info("Logfire: Pydantic AI instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument Pydantic AI: {e}")

        if LOGFIRE_TRACE_SQLALCHEMY:
            try:
                logfire.instrument_sqlalchemy()
                logger.info("Logfire: SQLAlchemy instrumentation enabled")
            except Exception as e:
                logger.warning(f"Failed to instrument SQLAlchemy: {e}")

        logger.info(
            f"Logfire monitoring initialized: "
            f"project={LOGFIRE_PROJECT_NAME}, "
            f"environment={LOGFIRE_ENVIRONMENT}, "
            f"service={LOGFIRE_SERVICE_NAME}"
        )

    except Exception as e:
        logger.error(f"Failed to initialize Logfire: {e}", exc_info=True)


def log_agent_run(run_id: str, task: str, model: str) -> None:
    """
    Log the start of an agent run with context.

    Args:
        run_id: The unique identifier for the run
        task: The latest user request driving the run
        model: The model identifier used for the run
    """
    try:
        import logfire

        logfire.info(
            "Agent run started",
            run_id=run_id,
            task=task,
            model=model,
        )
    except Exception:
        logger.debug(f"Could not log agent run to Logfire: run_id={run_id}")


def log_agent_completion(run_id: str, status: str, duration_ms: float, tool_calls: int = 0) -> None:
    """
    Log the end of an agent run, or its suspension for approval.

    Args:
        run_id: The unique identifier for the run
        status: The state the run settled in (completed, failed, awaiting_approval, ...)
        duration_ms: Wall-clock time spent in the run loop
        tool_calls: Tools executed so far in the run
    """
    try:
        import logfire

        logfire.info(
            "Agent run settled",
            run_id=run_id,
            status=status,
            duration_ms=duration_ms,
            tool_calls=tool_calls,
        )
    except Exception:
        logger.debug(f"Could not log agent completion to Logfire: run_id={run_id}")


def log_llm_call(model: str, response_chars: int, duration_ms: float, purpose: str = "turn") -> None:
    """
    Log a streaming model call.

    Args:
        model: The model name
        response_chars: Length of the accumulated response text
        duration_ms: Duration of the call in milliseconds
        purpose: Why the call was made (turn, plan, reflection)
    """
    try:
        import logfire

        logfire.info(
            "LLM call completed",
            model=model,
            response_chars=response_chars,
            duration_ms=duration_ms,
            purpose=purpose,
        )
    except Exception:
        logger.debug(f"Could not log LLM call to Logfire: model={model}")


def log_tool_invocation(tool_name: str, ok: bool, duration_ms: float, error: Optional[str] = None) -> None:
    """
    Log a tool execution outcome.

    Args:
        tool_name: Registered name of the tool
        ok: Whether the tool returned a result
        duration_ms: Execution time in milliseconds
        error: Redacted error message when the tool failed
    """
    try:
        import logfire

        logfire.info(
            "Tool invoked",
            tool_name=tool_name,
            ok=ok,
            duration_ms=duration_ms,
            error=error,
        )
    except Exception:
        logger.debug(f"Could not log tool invocation to Logfire: tool={tool_name}")


def log_error(error_type: str, error_message: str, context: Optional[dict[str, Any]] = None) -> None:
    """
    Log an error with context for debugging.

    Args:
        error_type: Type of error
        error_message: Error message
        context: Additional context dictionary
    """
    try:
        import logfire

        logfire.error(
            f"{error_type}: {error_message}",
            **(context or {}),
        )
    except Exception:
        logger.debug(f"Could not log error to Logfire: {error_type}")


# Initialize Logfire on module import
initialize_logfire()
