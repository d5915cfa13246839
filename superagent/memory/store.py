"""
Run Memory.

An ordered message log shared by reference between the orchestrator and
its sub-agents. Two buffers are kept independently:

- short_term: prompts and responses exchanged during phases
- long_term: final artifacts of completed runs

Messages are immutable once appended and a buffer is never reordered.
The short-term buffer is bounded: when it exceeds `short_term_limit`
the oldest messages are dropped from the head, insertion order of the
remainder is preserved. The long-term buffer is unbounded.

Memory lives for the lifetime of the process only.

Usage:
    memory = MemoryStore()

    await memory.append(Message.user("Plan for goal: ship it"))
    await memory.append(Message.assistant("1. build\\n2. test"), buffer="long_term")

    history = await memory.snapshot()            # short-term
    artifacts = await memory.snapshot("long_term")
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal
from uuid import uuid4

from superagent.utils.locks import AsyncReadWriteLock

logger = logging.getLogger(__name__)


MessageRole = Literal["system", "user", "assistant", "tool"]
Buffer = Literal["short_term", "long_term"]

DEFAULT_SHORT_TERM_LIMIT = 1000


@dataclass(frozen=True)
class Message:
    """
    One entry of a memory buffer. Frozen: a message never changes after
    it is created, so buffers can hand out their entries directly.

    `metadata` carries the producing agent's role and id, or the kind of
    entry ("artifact") for long-term records.
    """

    role: MessageRole
    content: str
    id: str = field(default_factory=lambda: str(uuid4()))
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def system(cls, content: str, **metadata: Any) -> Message:
        return cls(role="system", content=content, metadata=metadata)

    @classmethod
    def user(cls, content: str, **metadata: Any) -> Message:
        return cls(role="user", content=content, metadata=metadata)

    @classmethod
    def assistant(cls, content: str, **metadata: Any) -> Message:
        return cls(role="assistant", content=content, metadata=metadata)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Message:
        """Inverse of to_dict. Missing id/timestamp get fresh values."""
        values = dict(data)
        if "timestamp" in values:
            values["timestamp"] = datetime.fromisoformat(values["timestamp"])
        return cls(**values)

    def to_llm_format(self) -> dict[str, str]:
        """Convert to chat-completions format (role + content only)."""
        return {"role": self.role, "content": self.content}


# =============================================================================
# Memory Store
# =============================================================================


class MemoryStore:
    """
    Short-term / long-term message buffers behind a reader-writer lock.

    Concurrent snapshots never block each other. An append takes the
    write side briefly and does nothing but mutate the buffer.

    Example:
        memory = MemoryStore(short_term_limit=50)
        await memory.append(Message.user("hello"))
        assert [m.content for m in await memory.snapshot()] == ["hello"]
    """

    def __init__(self, short_term_limit: int | None = DEFAULT_SHORT_TERM_LIMIT) -> None:
        """
        Initialize the store.

        Args:
            short_term_limit: Maximum short-term messages kept (oldest are
                evicted first). None disables the bound.
        """
        if short_term_limit is not None and short_term_limit < 1:
            raise ValueError("short_term_limit must be positive or None")

        self._short_term: deque[Message] = deque(maxlen=short_term_limit)
        self._long_term: list[Message] = []
        self._short_term_limit = short_term_limit
        self._evicted = 0
        self._lock = AsyncReadWriteLock()

    @property
    def short_term_limit(self) -> int | None:
        return self._short_term_limit

    @property
    def evicted_count(self) -> int:
        """Number of short-term messages dropped by the bound so far."""
        return self._evicted

    async def append(self, message: Message, buffer: Buffer = "short_term") -> Message:
        """
        Append a message to a buffer.

        Args:
            message: Message to store
            buffer: "short_term" (default) or "long_term"

        Returns:
            The stored message
        """
        async with self._lock.write():
            if buffer == "short_term":
                if self._short_term_limit is not None and len(self._short_term) == self._short_term_limit:
                    self._evicted += 1
                self._short_term.append(message)
            elif buffer == "long_term":
                self._long_term.append(message)
            else:
                raise ValueError(f"Unknown memory buffer: {buffer}")

        logger.debug(f"[memory] Appended {message.role} message to {buffer}")
        return message

    async def snapshot(self, buffer: Buffer = "short_term") -> tuple[Message, ...]:
        """Return the buffer's messages in insertion order."""
        async with self._lock.read():
            if buffer == "short_term":
                return tuple(self._short_term)
            if buffer == "long_term":
                return tuple(self._long_term)
        raise ValueError(f"Unknown memory buffer: {buffer}")

    async def counts(self) -> dict[str, int]:
        """Message counts per buffer (for status polling)."""
        async with self._lock.read():
            return {
                "short_term": len(self._short_term),
                "long_term": len(self._long_term),
            }

    def __repr__(self) -> str:
        return (
            f"<MemoryStore short_term={len(self._short_term)} "
            f"long_term={len(self._long_term)} limit={self._short_term_limit}>"
        )
