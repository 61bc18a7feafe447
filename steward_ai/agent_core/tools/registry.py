from __future__ import annotations

"""Tool registry.

The registry maps a tool name (the ``tool_id`` of a proposal) to an
executable tool implementation, and keeps two per-tool switches:

- ``enabled``: disabled tools are hidden from the model and refused by the
  invoker,
- ``auto_approval``: the approval engine never asks before running the tool.
"""

import json
from typing import Any, Dict, FrozenSet, List, Optional

from .base import Tool, tool_definition


class ToolRegistry:
    """
    In-memory mapping of tool names to implementations.

    Notes:
        - ``register`` overwrites any existing mapping for the tool name.
        - ``get`` will raise ``KeyError`` if the tool is missing; ``lookup``
          returns ``None`` instead.
    """

    def __init__(self) -> None:
        """Initialize an empty tool registry."""
        self._tools: Dict[str, Tool] = {}
        self._enabled: Dict[str, bool] = {}
        self._auto_approval: Dict[str, bool] = {}

    def register(self, tool: Tool, *, enabled: bool = True, auto_approval: Optional[bool] = None) -> None:
        """
        Register a tool implementation.

        Args:
            tool: The tool instance to register.
            enabled: Initial enabled flag.
            auto_approval: Overrides the tool's own ``auto_approval`` attribute.
        """
        self._tools[tool.name] = tool
        self._enabled[tool.name] = enabled
        self._auto_approval[tool.name] = bool(tool.auto_approval if auto_approval is None else auto_approval)

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)
        self._enabled.pop(name, None)
        self._auto_approval.pop(name, None)

    def get(self, name: str) -> Tool:
        """
        Retrieve a registered tool by name.

        Raises:
            KeyError: If no tool is registered with the given name.
        """
        return self._tools[name]

    def lookup(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def has(self, name: str) -> bool:
        return name in self._tools

    def is_enabled(self, name: str) -> bool:
        return self._enabled.get(name, False)

    def set_enabled(self, name: str, enabled: bool) -> None:
        """Enable or disable a tool. Raises ``KeyError`` for unknown tools."""
        self.get(name)
        self._enabled[name] = enabled

    def is_auto_approved(self, name: str) -> bool:
        return self._auto_approval.get(name, False)

    def set_auto_approval(self, name: str, auto_approval: bool) -> None:
        """Toggle auto-approval for a tool. Raises ``KeyError`` for unknown tools."""
        self.get(name)
        self._auto_approval[name] = auto_approval

    def auto_approved_names(self) -> FrozenSet[str]:
        """Snapshot of the tools the approval engine should never ask about."""
        return frozenset(n for n, flag in self._auto_approval.items() if flag and n in self._tools)

    def available(self) -> List[Tool]:
        """Enabled tools in registration order."""
        return [t for n, t in self._tools.items() if self._enabled.get(n, False)]

    def definitions(self) -> List[Dict[str, Any]]:
        """Enabled tools in the OpenAI function-calling format."""
        return [tool_definition(t) for t in self.available()]

    def describe(self) -> str:
        """Human-readable tool catalogue for the system prompt."""
        tools = self.available()
        if not tools:
            return "No tools are available."
        lines: List[str] = []
        for t in tools:
            lines.append(f"- {t.name}: {t.description}")
            lines.append(f"  parameters: {json.dumps(t.parameters, ensure_ascii=False)}")
        return "\n".join(lines)
