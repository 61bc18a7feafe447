from __future__ import annotations

"""Tool protocol and a pydantic-backed implementation.

A tool is the concrete execution unit behind a model's tool-call proposal.

The run loop resolves ``ToolCallProposal.tool_id`` through a ``ToolRegistry``
and executes the tool through a ``ToolInvoker``.

Tools should:

- validate their own arguments (the model is not trusted to respect the
  declared schema),
- return a plain string result that is appended to the conversation,
- raise ``ToolError`` subclasses for expected failures,
- avoid performing approval decisions themselves (approval is enforced by the
  engine before invocation).
"""

from typing import Any, Awaitable, Callable, Dict, Protocol, Type, runtime_checkable

from pydantic import BaseModel, ValidationError

from .errors import InvalidToolArgumentsError


@runtime_checkable
class Tool(Protocol):
    """Protocol for tool implementations."""

    name: str
    description: str
    parameters: Dict[str, Any]
    auto_approval: bool

    async def execute(self, arguments: Dict[str, Any]) -> str: ...


ToolHandler = Callable[[BaseModel], Awaitable[Any]]


class FunctionTool:
    """Tool built from a pydantic input model and an async handler.

    Arguments are validated with ``input_model`` before the handler runs; the
    handler receives the validated model instance. Non-string results are
    rendered with ``str`` (pydantic models as JSON).

    Example
    -------

    >>> class EchoInput(BaseModel):
    ...     text: str
    >>> async def echo(inp: EchoInput) -> str:
    ...     return inp.text
    >>> tool = FunctionTool("echo", "Echo the given text", EchoInput, echo)
    """

    def __init__(
        self,
        name: str,
        description: str,
        input_model: Type[BaseModel],
        handler: ToolHandler,
        *,
        auto_approval: bool = False,
    ) -> None:
        self.name = name
        self.description = description
        self.input_model = input_model
        self.parameters: Dict[str, Any] = input_model.model_json_schema()
        self.auto_approval = auto_approval
        self._handler = handler

    async def execute(self, arguments: Dict[str, Any]) -> str:
        try:
            validated = self.input_model.model_validate(arguments)
        except ValidationError as e:
            first = e.errors()[0] if e.errors() else {}
            loc = ".".join(str(p) for p in first.get("loc", ())) or None
            raise InvalidToolArgumentsError(self.name, str(first.get("msg", e)), parameter=loc) from e
        result = await self._handler(validated)
        if isinstance(result, BaseModel):
            return result.model_dump_json()
        return str(result)


def tool_definition(tool: Tool) -> Dict[str, Any]:
    """Render a tool in the OpenAI function-calling format."""
    return {
        "type": "function",
        "function": {
            "name": tool.name,
            "description": tool.description,
            "parameters": tool.parameters,
        },
    }
