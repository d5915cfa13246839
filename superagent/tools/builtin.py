"""
Built-in tools.

- echo: returns its input unchanged (the executor's default tool)
- uppercase: returns its input upper-cased
"""

from __future__ import annotations

from typing import Any

from .base import Tool, ToolResult
from .registry import ToolRegistry

DEFAULT_TOOL = "echo"


def _text_argument(arguments: dict[str, Any]) -> str | None:
    text = arguments.get("text")
    return text if isinstance(text, str) else None


class EchoTool(Tool):
    """Returns the input text."""

    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Returns the input text"

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        text = _text_argument(arguments)
        if text is None:
            return ToolResult.error("missing required argument 'text'")
        return ToolResult.success(text)


class UppercaseTool(Tool):
    """Returns the input text upper-cased."""

    @property
    def name(self) -> str:
        return "uppercase"

    @property
    def description(self) -> str:
        return "Returns the input text in upper case"

    async def execute(self, arguments: dict[str, Any]) -> ToolResult:
        text = _text_argument(arguments)
        if text is None:
            return ToolResult.error("missing required argument 'text'")
        return ToolResult.success(text.upper())


# =============================================================================
# Factory Functions
# =============================================================================


def create_default_registry() -> ToolRegistry:
    """
    Create a registry with the built-in tools.

    Returns:
        ToolRegistry with echo and uppercase registered
    """
    registry = ToolRegistry()
    registry.register(EchoTool())
    registry.register(UppercaseTool())
    return registry
