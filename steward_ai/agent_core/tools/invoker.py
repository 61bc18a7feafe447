from __future__ import annotations

"""Tool invocation.

``ToolInvoker`` executes one ``ToolCallProposal`` against the registry:

1. resolve the tool (``ToolNotFoundError``) and check it is enabled
   (``ToolDisabledError``),
2. apply the safety guard to the arguments (``InvalidToolArgumentsError``),
3. await ``Tool.execute`` under the caller-side timeout and the run's
   cancellation token (``ToolTimeoutError`` / ``RunCancelledError``),
4. wrap any non-``ToolError`` exception as ``ToolExecutionError``.

The caller-side timeout applies regardless of any timeout the tool enforces
internally.
"""

import logging
import time
from typing import Optional

from ...core.monitoring import log_tool_invocation
from ..cancellation import CancellationToken, GuardTimeoutError, RunCancelledError
from ..policy.safety import SafetyGuard
from ..schemas.domain import ToolCallProposal
from .errors import (
    InvalidToolArgumentsError,
    ToolDisabledError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from .registry import ToolRegistry

logger = logging.getLogger(__name__)


class ToolInvoker:
    """Execute tool proposals through a ``ToolRegistry``."""

    def __init__(self, registry: ToolRegistry, *, guard: Optional[SafetyGuard] = None) -> None:
        self._registry = registry
        self._guard = guard or SafetyGuard()

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def invoke(
        self,
        proposal: ToolCallProposal,
        *,
        timeout: float,
        token: Optional[CancellationToken] = None,
    ) -> str:
        """
        Execute the proposed tool and return its textual result.

        Args:
            proposal: The approved (or approval-exempt) tool proposal.
            timeout: Caller-side timeout in seconds.
            token: Run cancellation token; a fresh one is used when omitted.

        Raises:
            ToolError: Any tool failure, timeouts included.
            RunCancelledError: The run was cancelled during execution.
        """
        name = proposal.tool_id
        tool = self._registry.lookup(name)
        if tool is None:
            raise ToolNotFoundError(name)
        if not self._registry.is_enabled(name):
            raise ToolDisabledError(name)

        err = self._guard.validate_tool_args(proposal.input)
        if err is not None:
            raise InvalidToolArgumentsError(name, err)

        logger.info(f"executing tool '{name}' args={self._guard.redact(str(proposal.input))}")
        token = token or CancellationToken()
        started = time.perf_counter()
        try:
            result = await token.guard(tool.execute(dict(proposal.input)), timeout=timeout)
        except RunCancelledError:
            logger.info(f"tool '{name}' cancelled")
            raise
        except GuardTimeoutError as e:
            self._record(name, started, error=str(e))
            raise ToolTimeoutError(name, e.timeout) from e
        except ToolError as e:
            self._record(name, started, error=str(e))
            raise
        except Exception as e:
            self._record(name, started, error=str(e))
            raise ToolExecutionError(name, str(e) or type(e).__name__) from e

        self._record(name, started)
        return result if isinstance(result, str) else str(result)

    def _record(self, name: str, started: float, *, error: Optional[str] = None) -> None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        redacted = self._guard.redact(error) if error is not None else None
        if redacted is None:
            logger.info(f"tool '{name}' finished in {duration_ms:.1f}ms")
        else:
            logger.warning(f"tool '{name}' failed after {duration_ms:.1f}ms: {redacted}")
        log_tool_invocation(name, redacted is None, duration_ms, redacted)
