"""Tool error taxonomy.

Every failure of a tool invocation surfaces as a ``ToolError`` subclass so the
run loop can settle the run in ``failed`` with a readable message, whatever
went wrong.
"""

from __future__ import annotations

from typing import Optional


class ToolError(Exception):
    """Base class for tool invocation failures."""


class ToolNotFoundError(ToolError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' not found")


class InvalidToolArgumentsError(ToolError):
    def __init__(self, tool_name: str, details: str, *, parameter: Optional[str] = None) -> None:
        self.tool_name = tool_name
        self.details = details
        self.parameter = parameter
        super().__init__(f"Invalid arguments for tool '{tool_name}': {details}")


class ToolTimeoutError(ToolError):
    def __init__(self, tool_name: str, timeout: float) -> None:
        self.tool_name = tool_name
        self.timeout = timeout
        super().__init__(f"Tool '{tool_name}' timed out after {timeout:g}s")


class ToolExecutionError(ToolError):
    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        self.reason = reason
        super().__init__(f"Tool '{tool_name}' failed: {reason}")


class ToolDisabledError(ToolError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Tool '{name}' is disabled")
