from __future__ import annotations

"""Safety guardrails applied around tool execution.

``SafetyGuard`` validates tool arguments before a tool runs and scrubs known
secret formats from text that is about to be logged or traced.
"""

import json
import re
from typing import Any, Dict, Optional

from .models import SafetyPolicy

_SECRET_PATTERNS = (
    re.compile(r"sk-[A-Za-z0-9]{10,}"),
    re.compile(r"sk-ant-[A-Za-z0-9_-]{10,}"),
    re.compile(r"ghp_[A-Za-z0-9]{10,}"),
    re.compile(r"xoxb-[A-Za-z0-9-]{10,}"),
    re.compile(r"AIza[0-9A-Za-z_-]{20,}"),
)


class SafetyGuard:
    """Apply a ``SafetyPolicy`` to tool arguments and log text."""

    def __init__(self, policy: Optional[SafetyPolicy] = None) -> None:
        self._policy = policy or SafetyPolicy()

    @property
    def policy(self) -> SafetyPolicy:
        """Return the underlying policy object."""
        return self._policy

    def validate_tool_args(self, args: Dict[str, Any]) -> Optional[str]:
        """
        Validate tool arguments against basic safety constraints.

        Args:
            args: The dictionary of arguments to validate.

        Returns:
            An error string if validation fails, otherwise None.
        """
        raw = json.dumps(args, default=str).encode("utf-8")
        if len(raw) > self._policy.max_tool_args_bytes:
            return f"tool args too large ({len(raw)} > {self._policy.max_tool_args_bytes} bytes)"
        return None

    def redact(self, text: str) -> str:
        """
        Redact known secrets from text.

        Args:
            text: The input text.

        Returns:
            The sanitized text with secrets replaced by '<redacted>'.
        """
        if not self._policy.redact_secrets:
            return text
        out = text
        for pat in _SECRET_PATTERNS:
            out = pat.sub("<redacted>", out)
        return out
