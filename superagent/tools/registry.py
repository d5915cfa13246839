"""
Tool Registry.

Name -> Tool lookup handed to executor sub-agents by reference. Tools are
registered once at startup; plan steps name them with a "tool_name:"
prefix, so names may not contain a colon or whitespace.

Usage:
    registry = ToolRegistry()
    registry.register(EchoTool())

    tool = registry.get_required("echo")
    result = await tool.execute({"text": "hello"})
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from superagent.errors import SuperAgentError

if TYPE_CHECKING:
    from .base import Tool

logger = logging.getLogger(__name__)


class ToolRegistryError(SuperAgentError):
    """Invalid, duplicate or unknown tool."""


def _check_tool(tool: Tool) -> None:
    name = tool.name
    if not isinstance(name, str) or not name:
        raise ToolRegistryError(f"{tool!r} has no name")
    if ":" in name or any(ch.isspace() for ch in name):
        raise ToolRegistryError(f"Tool name '{name}' must not contain ':' or whitespace")
    if not tool.description:
        raise ToolRegistryError(f"Tool '{name}' needs a description")
    if tool.input_schema.get("type") != "object":
        raise ToolRegistryError(f"Tool '{name}' input_schema must describe an object")


class ToolRegistry:
    """
    Registry of available tools, in registration order.

    Example:
        registry = create_default_registry()
        assert "echo" in registry
        assert registry.list_names() == ["echo", "uppercase"]
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """
        Raises:
            ToolRegistryError: The tool is invalid or its name is taken
        """
        _check_tool(tool)
        if tool.name in self._tools:
            raise ToolRegistryError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.info(f"[tool_registry] Registered {tool.name}")

    def unregister(self, name: str) -> bool:
        """Returns False if nothing was registered under `name`."""
        removed = self._tools.pop(name, None) is not None
        if removed:
            logger.info(f"[tool_registry] Unregistered {name}")
        return removed

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def get_required(self, name: str) -> Tool:
        """
        Raises:
            ToolRegistryError: Unknown tool (the message lists what is registered)
        """
        try:
            return self._tools[name]
        except KeyError:
            raise ToolRegistryError(
                f"Unknown tool '{name}' (registered: {', '.join(self._tools) or 'none'})"
            ) from None

    def list_names(self) -> list[str]:
        return list(self._tools)

    def to_schemas(self) -> list[dict[str, Any]]:
        """Name, description and input schema of every tool."""
        return [tool.to_schema() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __repr__(self) -> str:
        return f"<ToolRegistry {self.list_names()}>"
