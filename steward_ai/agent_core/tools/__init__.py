"""Tool invocation contract.

- ``Tool`` protocol and ``FunctionTool`` (pydantic input model + async handler).
- ``ToolRegistry``: lookup plus enabled / auto-approval switches.
- ``ToolInvoker``: execution under a caller-side timeout with safety checks.
- ``ToolError`` hierarchy for every failure mode.
"""

from .base import FunctionTool, Tool, tool_definition
from .errors import (
    InvalidToolArgumentsError,
    ToolDisabledError,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from .invoker import ToolInvoker
from .registry import ToolRegistry

__all__ = [
    "FunctionTool",
    "Tool",
    "tool_definition",
    "ToolRegistry",
    "ToolInvoker",
    "ToolError",
    "ToolNotFoundError",
    "InvalidToolArgumentsError",
    "ToolTimeoutError",
    "ToolExecutionError",
    "ToolDisabledError",
]
