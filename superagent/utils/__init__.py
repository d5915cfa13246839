"""
SuperAgent Utilities

Common utilities used across the runtime.
"""

from .locks import AsyncReadWriteLock

__all__ = [
    "AsyncReadWriteLock",
]
