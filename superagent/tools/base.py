"""
Tool Base Classes.

Tools are named capabilities the executor invokes while running a plan.
A tool does not know it is called by an agent: it receives a dict of
arguments and returns a ToolResult.

Usage:
    class ReverseTool(Tool):
        @property
        def name(self) -> str:
            return "reverse"

        @property
        def description(self) -> str:
            return "Reverses the input text"

        async def execute(self, arguments: dict) -> ToolResult:
            return ToolResult.success(arguments["text"][::-1])
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

TEXT_INPUT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "text": {"type": "string", "description": "Input text"},
    },
    "required": ["text"],
}


@dataclass(frozen=True, slots=True)
class ToolResult:
    """
    Outcome of one tool call.

    A tool reports failure in the result (is_error=True) instead of
    raising; the micro agent wrapping it turns that into a ToolError.
    """

    text: str
    is_error: bool = False

    @classmethod
    def success(cls, text: str) -> ToolResult:
        return cls(text)

    @classmethod
    def error(cls, message: str) -> ToolResult:
        return cls(f"Error: {message}", is_error=True)


class Tool(ABC):
    """
    A named capability invoked with a dict of arguments.

    Subclasses provide `name`, `description` and `execute`. The input
    schema defaults to a single "text" string, which is what plan steps
    pass in.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    def input_schema(self) -> dict[str, Any]:
        return TEXT_INPUT_SCHEMA

    @abstractmethod
    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        """Run the tool. Failures come back as ToolResult.error(...)."""
        ...

    def to_schema(self) -> dict[str, Any]:
        """Listing entry for this tool."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"
