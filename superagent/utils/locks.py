"""
Async reader-writer lock.

Readers share access; a writer excludes readers and other writers.
Waiting writers block new readers so a steady stream of status polls
cannot starve a registration.

Usage:
    lock = AsyncReadWriteLock()

    async with lock.read():
        snapshot = tuple(items)

    async with lock.write():
        items.append(item)  # no awaits on network I/O in here
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class AsyncReadWriteLock:
    """Writer-preferring reader-writer lock for asyncio code."""

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def write_locked(self) -> bool:
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and self._waiting_writers == 0
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if self._readers == 0:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(lambda: not self._writer and self._readers == 0)
            finally:
                self._waiting_writers -= 1
                # a cancelled writer may have been the only thing holding readers back
                self._cond.notify_all()
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()

    def __repr__(self) -> str:
        return (
            f"<AsyncReadWriteLock readers={self._readers} "
            f"writer={self._writer} waiting_writers={self._waiting_writers}>"
        )
