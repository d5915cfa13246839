"""
SuperAgent Memory

In-process message buffers shared by the agents of a run.
"""

from .store import (
    DEFAULT_SHORT_TERM_LIMIT,
    Buffer,
    MemoryStore,
    Message,
    MessageRole,
)

__all__ = [
    "DEFAULT_SHORT_TERM_LIMIT",
    "Buffer",
    "MemoryStore",
    "Message",
    "MessageRole",
]
