"""System prompt construction.

The template carries two placeholders substituted at run start:
``[DYNAMIC_TIMESTAMP]`` (current UTC time, ISO 8601) and
``[TOOL_DESCRIPTIONS]`` (one line per enabled tool).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

TIMESTAMP_PLACEHOLDER = "[DYNAMIC_TIMESTAMP]"
TOOLS_PLACEHOLDER = "[TOOL_DESCRIPTIONS]"

DEFAULT_SYSTEM_PROMPT = """# AI Assistant with Tool Capabilities
You are a helpful assistant that can use tools to complete tasks.

Current time: [DYNAMIC_TIMESTAMP]

## Available tools
[TOOL_DESCRIPTIONS]

## Answer format
- Think in <thinking>...</thinking> before acting.
- Describe what you did or observed in <observation>...</observation>.
- To use a tool, answer with a single JSON object and nothing else:
  {"type": "tool_call", "tool_id": "<tool name>", "requires_approval": true,
   "input": {...}, "reason": "<why>", "next_step_after_tool": "<what comes next>"}
- Use at most one tool per answer and wait for its result.
- After a tool result, check your work in <reflection>...</reflection> and end
  it with a line "verdict: continue" when something is still missing or
  "verdict: complete" when the task is done.
- Put the final answer for the user in <response>...</response>."""

NO_TOOLS_TEXT = "(no tools available)"


def build_system_prompt(
    tool_descriptions: str,
    *,
    template: str = DEFAULT_SYSTEM_PROMPT,
    custom_prompt: Optional[str] = None,
    memory_context: str = "",
    now: Optional[datetime] = None,
) -> str:
    """Render the system prompt for one run."""
    timestamp = (now or datetime.now(timezone.utc)).isoformat()
    prompt = template.replace(TIMESTAMP_PLACEHOLDER, timestamp).replace(
        TOOLS_PLACEHOLDER, tool_descriptions or NO_TOOLS_TEXT
    )
    if custom_prompt and custom_prompt.strip():
        prompt += "\n\n## Custom Instructions:\n" + custom_prompt.strip()
    if memory_context:
        prompt += "\n\n## Relevant memory\n" + memory_context
    return prompt
