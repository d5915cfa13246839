"""
Micro agents.

A micro agent is a stateless single-capability unit invoked once per
plan step: `invoke(text) -> text`. Instances are cheap and transient;
the executor builds one per step and drops it afterwards.

Failures surface as ToolError so the executor can collect them per step.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from superagent.errors import ToolError

if TYPE_CHECKING:
    from superagent.tools import Tool

logger = logging.getLogger(__name__)


class MicroAgent(ABC):
    """Single-capability unit: text in, text out."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    async def invoke(self, text: str) -> str:
        """
        Run the capability.

        Raises:
            ToolError: The capability failed for this input
        """
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class ToolMicroAgent(MicroAgent):
    """Binds a registry tool to the micro agent contract."""

    def __init__(self, tool: Tool):
        self.tool = tool

    @property
    def name(self) -> str:
        return self.tool.name

    async def invoke(self, text: str) -> str:
        try:
            result = await self.tool.execute({"text": text})
        except ToolError:
            raise
        except Exception as e:
            logger.warning(f"[micro_agent] Tool {self.name} raised {type(e).__name__}: {e}")
            raise ToolError(self.name, str(e)) from e

        if result.is_error:
            raise ToolError(self.name, result.text)
        return result.text


class UppercaseAgent(MicroAgent):
    """Upper-cases its input."""

    @property
    def name(self) -> str:
        return "uppercase"

    async def invoke(self, text: str) -> str:
        return text.upper()
