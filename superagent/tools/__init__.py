"""
SuperAgent Tools

Named capabilities invoked by the executor, one per plan step.

Usage:
    from superagent.tools import create_default_registry

    registry = create_default_registry()
    result = await registry.get_required("echo").execute({"text": "hi"})
"""

from .base import TEXT_INPUT_SCHEMA, Tool, ToolResult
from .builtin import DEFAULT_TOOL, EchoTool, UppercaseTool, create_default_registry
from .registry import ToolRegistry, ToolRegistryError

__all__ = [
    # Base
    "TEXT_INPUT_SCHEMA",
    "Tool",
    "ToolResult",
    # Registry
    "ToolRegistry",
    "ToolRegistryError",
    # Built-ins
    "DEFAULT_TOOL",
    "EchoTool",
    "UppercaseTool",
    "create_default_registry",
]
