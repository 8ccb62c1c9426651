"""Base implementation for tools implementing the Tool protocol."""

from __future__ import annotations

from typing import Any

from xero_ledger.tools.protocol import ToolInputSchema


class StandardTool:
    """
    Base class providing the common Tool protocol plumbing.

    Subclasses set ``_name``, ``_description`` and ``_input_schema`` and
    implement ``_execute_impl``. Missing required arguments are reported as
    an error result rather than raised.

    Example:
        class EchoTool(StandardTool):
            _name = "echo"
            _description = "Echo the input back"
            _input_schema: ToolInputSchema = {
                "type": "object",
                "properties": {"text": {"type": "string"}},
                "required": ["text"],
            }

            async def _execute_impl(self, **kwargs: Any) -> dict[str, Any]:
                return {"status": "success", "text": kwargs["text"]}
    """

    _name: str
    _description: str
    _input_schema: ToolInputSchema

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def input_schema(self) -> ToolInputSchema:
        return self._input_schema

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        """
        Validate required arguments and run the tool.

        Returns:
            JSON-serializable dict with a "status" key
        """
        missing = [
            param
            for param in self._input_schema["required"]
            if kwargs.get(param) in (None, "")
        ]
        if missing:
            return {
                "status": "error",
                "error": f"Missing required parameter(s): {', '.join(missing)}",
            }
        return await self._execute_impl(**kwargs)

    async def _execute_impl(self, **kwargs: Any) -> dict[str, Any]:
        raise NotImplementedError(
            f"{self.__class__.__name__} must implement _execute_impl"
        )
