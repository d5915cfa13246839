"""
Static provider.

Deterministic, in-memory and always healthy once started. Answers with
a fixed response, or echoes the last message when no response is set:

    "[static:<name>] echo: <last message>"

Used by tests and by offline runs of the orchestrator.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from .base import BaseProvider

if TYPE_CHECKING:
    from superagent.memory import Message

logger = logging.getLogger(__name__)


class StaticProvider(BaseProvider):
    """
    In-memory provider returning a fixed text.

    Example:
        provider = StaticProvider("local", response="ship it")
        await provider.start()
        assert await provider.chat([Message.user("plan?")]) == "ship it"
    """

    def __init__(
        self,
        name: str = "static",
        *,
        response: str | None = None,
        auto_start: bool = True,
    ):
        """
        Args:
            name: Model identifier
            response: Fixed reply. None echoes the last message.
            auto_start: Report running before start() is called
        """
        super().__init__(name)
        self.response = response
        self._running = auto_start
        self.calls: list[tuple[Message, ...]] = []

    async def start(self) -> None:
        if not self._running:
            logger.info(f"[static_provider] Started {self.name}")
        self._running = True

    async def stop(self) -> None:
        if self._running:
            logger.info(f"[static_provider] Stopped {self.name}")
        self._running = False

    async def is_running(self) -> bool:
        return self._running

    async def chat(self, messages: Sequence[Message]) -> str:
        self.calls.append(tuple(messages))
        if self.response is not None:
            return self.response
        last = messages[-1].content if messages else ""
        return f"[static:{self.name}] echo: {last}"
