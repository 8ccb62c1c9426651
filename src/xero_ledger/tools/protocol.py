"""Tool protocol shared by the MCP server and the CLI."""

from __future__ import annotations

from typing import Any, Protocol, TypedDict, runtime_checkable


class ToolParameter(TypedDict, total=False):
    """JSON Schema for a single parameter."""

    type: str
    description: str
    enum: list[str] | None
    items: dict[str, Any] | None
    format: str


class ToolInputSchema(TypedDict):
    """JSON Schema for tool input parameters."""

    type: str  # Always "object"
    properties: dict[str, ToolParameter]
    required: list[str]


@runtime_checkable
class Tool(Protocol):
    """
    A tool an agent runtime can call.

    Tools expose a unique snake_case name, a description for the model's
    context, a JSON Schema for their arguments, and an async ``execute``
    returning a JSON-serializable dict with a ``"status"`` of ``"success"``
    or ``"error"``.
    """

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def input_schema(self) -> ToolInputSchema: ...

    async def execute(self, **kwargs: Any) -> dict[str, Any]: ...
