"""Steward-AI.

This package contains an autonomous agent execution engine: given a
conversation it drives a language model through a loop of reasoning, tool
proposals, approval gates and tool executions until a final answer is ready.

High-level architecture
-----------------------

The codebase is organized around a single run loop and a handful of leaf
components it depends on:

- **Response parsing**: the model's free-form output (tagged sections,
  embedded JSON, legacy formats) is turned into display text, structured
  sections and at most one tool-call proposal.
- **Approval**: a pure policy decides whether a proposed tool call needs a
  human decision before it runs.
- **Tools**: a registry of named, schema-described tools executed under a
  caller-side timeout.
- **Memory and reflection**: a bounded working memory, a persistent long-term
  memory and a reflection pass that turns finished runs into learnings.

Core subpackages
----------------

- ``steward_ai.agent_core``: schemas, parser, policy, tools, planning, memory,
  reflection, the model interface and the LangGraph-based runtime engine.
- ``steward_ai.core``: settings, logging configuration and Logfire tracing.

Typical workflow
----------------

Most integrations should use ``steward_ai.agent_core.factory.build_engine``:

1. Register tools in a ``ToolRegistry``.
2. Build an ``AgentEngine`` with a model service.
3. Call ``start`` (or ``start_with_history``) and render messages as they are
   added.
4. If the run suspends for approval, call ``approve_tool_call`` or
   ``reject_tool_call`` to resume.
"""
