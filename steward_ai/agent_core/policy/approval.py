from __future__ import annotations

"""Approval gating for tool proposals.

``decide`` is the single authority on whether a proposed tool call may run
without asking the user. It is a pure function of its three inputs so the
engine (and tests) can evaluate it at any point without hidden state.

Rule order
----------

1. Tools flagged for auto-approval never need approval.
2. Once the per-run tool-call cap is reached, every call needs approval,
   whatever the mode.
3. Otherwise the approval mode decides:

   - ``always_ask``: always ask,
   - ``per_thread``: ask until the user has approved once in this run,
   - ``auto_approve``: never ask.

The model's own ``requires_approval`` hint is informational only.
"""

import logging

from ..schemas.domain import ApprovalMode, ToolCallProposal
from .models import ApprovalConfig, ApprovalVerdict, RunCounters

logger = logging.getLogger(__name__)


def decide(proposal: ToolCallProposal, counters: RunCounters, config: ApprovalConfig) -> ApprovalVerdict:
    """
    Compute the approval verdict for a proposed tool call.

    Args:
        proposal: The tool call the model proposed.
        counters: Tool-call count and thread grant of the current run.
        config: Approval mode, per-run cap and auto-approved tool names.

    Returns:
        An ``ApprovalVerdict`` with the decision and the rule that produced it.
    """
    tool_id = proposal.tool_id
    if tool_id in config.auto_approved_tools:
        return ApprovalVerdict(False, f"tool '{tool_id}' is auto-approved", tool_id)

    if counters.tool_call_count >= config.max_tool_calls_per_run:
        return ApprovalVerdict(
            True,
            f"tool call limit reached ({counters.tool_call_count} >= {config.max_tool_calls_per_run})",
            tool_id,
        )

    if config.mode == ApprovalMode.always_ask:
        return ApprovalVerdict(True, "approval mode is always_ask", tool_id)
    if config.mode == ApprovalMode.per_thread:
        if counters.thread_granted:
            return ApprovalVerdict(False, "approval already granted in this run", tool_id)
        return ApprovalVerdict(True, "approval mode is per_thread and no grant yet", tool_id)
    return ApprovalVerdict(False, "approval mode is auto_approve", tool_id)


def needs_approval(proposal: ToolCallProposal, counters: RunCounters, config: ApprovalConfig) -> bool:
    """Return ``True`` if the proposed tool call must wait for a human decision."""
    verdict = decide(proposal, counters, config)
    logger.debug(f"approval for '{proposal.tool_id}': required={verdict.require_approval} ({verdict.reason})")
    return verdict.require_approval
