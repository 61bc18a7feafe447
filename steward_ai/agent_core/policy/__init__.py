"""Policy subsystem for tool approval and safety.

The policy layer provides *runtime* decisions for tool execution. It is
intentionally separate from prompting and parsing so that whether a tool
runs never depends on what the model claims about it.

Components
----------

- ``approval.decide`` / ``approval.needs_approval``: pure approval gating over
  ``(proposal, RunCounters, ApprovalConfig)``.
- ``SafetyGuard`` configured by ``SafetyPolicy``: argument size limits and
  secret redaction.
"""

from .approval import decide, needs_approval
from .models import ApprovalConfig, ApprovalVerdict, RunCounters, SafetyPolicy
from .safety import SafetyGuard

__all__ = [
    "decide",
    "needs_approval",
    "ApprovalConfig",
    "ApprovalVerdict",
    "RunCounters",
    "SafetyPolicy",
    "SafetyGuard",
]
