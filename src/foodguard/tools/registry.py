"""Tool registry.

Data tools are plain callables registered by name together with a description and a JSON
schema for their arguments. The reasoning loop advertises them to the model and executes the
calls it requests. Execution never raises: failures come back as an unsuccessful
:class:`ToolResult`.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable

from pydantic import BaseModel, Field

from foodguard.logging import get_logger, tool_context

logger = get_logger(__name__)


class ToolResult(BaseModel):
    """Result from a tool execution."""

    success: bool = True
    content: dict[str, Any] | list[Any] | str | None = None
    error: str | None = None


class Tool(ABC):
    """Base class for tools."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name."""

    @property
    @abstractmethod
    def description(self) -> str:
        """Tool description for the model."""

    @abstractmethod
    def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the tool."""

    def get_schema(self) -> dict[str, Any]:
        """JSON schema for the tool arguments."""
        return {"type": "object", "properties": {}, "required": []}


class FunctionTool(Tool):
    """Tool wrapper for a Python callable."""

    def __init__(
        self,
        name: str,
        func: Callable[..., Any],
        description: str,
        schema: dict[str, Any],
    ) -> None:
        self._name = name
        self._func = func
        self._description = description
        self._schema = schema

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    def execute(self, **kwargs: Any) -> ToolResult:
        """Execute the wrapped callable."""
        try:
            result = self._func(**kwargs)
        except Exception as e:
            logger.exception("Tool raised past its boundary")
            return ToolResult(success=False, error=f"{type(e).__name__}: {e}")
        if isinstance(result, ToolResult):
            return result
        return ToolResult(success=True, content=result)

    def get_schema(self) -> dict[str, Any]:
        return self._schema


class ToolRegistry:
    """Registry for managing tools."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def register(self, tool: Tool) -> None:
        """Register a tool, replacing any tool with the same name."""
        self._tools[tool.name] = tool
        logger.debug("Tool registered", extra={"tool_name": tool.name})

    def register_function(
        self,
        name: str,
        func: Callable[..., Any],
        description: str,
        schema: dict[str, Any],
    ) -> None:
        """Register a callable as a tool."""
        self.register(FunctionTool(name=name, func=func, description=description, schema=schema))

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def openai_tools(self) -> list[dict[str, Any]]:
        """Render the registry as OpenAI chat-completions function tools."""
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.get_schema(),
                },
            }
            for tool in self._tools.values()
        ]

    def execute(self, tool_name: str, arguments: dict[str, Any]) -> ToolResult:
        """Execute a tool by name.

        Args:
            tool_name: Name of the tool to execute.
            arguments: Keyword arguments decoded from the model's tool call.

        Returns:
            ToolResult with execution result.
        """
        tool = self.get(tool_name)
        if tool is None:
            return ToolResult(
                success=False,
                error=f"Tool '{tool_name}' not found. Available tools: {', '.join(self._tools)}",
            )
        with tool_context(tool_name):
            return tool.execute(**arguments)
