"""
Tests for the MemoryStore and its reader-writer lock.
"""

import asyncio

import pytest

from superagent.memory import MemoryStore, Message
from superagent.utils import AsyncReadWriteLock


class TestMessage:
    """Tests for Message."""

    def test_factories_set_role(self):
        assert Message.user("hi").role == "user"
        assert Message.assistant("hi").role == "assistant"
        assert Message.system("hi").role == "system"

    def test_metadata_from_kwargs(self):
        msg = Message.user("hi", agent_id="planner-1")
        assert msg.metadata == {"agent_id": "planner-1"}

    def test_is_immutable(self):
        msg = Message.user("hi")
        with pytest.raises(AttributeError):
            msg.content = "changed"

    def test_dict_round_trip_keeps_identity(self):
        msg = Message.assistant("done", phase="review")
        restored = Message.from_dict(msg.to_dict())
        assert restored == msg

    def test_llm_format(self):
        assert Message.user("hi").to_llm_format() == {"role": "user", "content": "hi"}


class TestMemoryStore:
    """Tests for MemoryStore buffers."""

    @pytest.mark.asyncio
    async def test_preserves_insertion_order_and_count(self):
        memory = MemoryStore()
        sent = [Message.user(f"m{i}") for i in range(10)]
        for msg in sent:
            await memory.append(msg)

        snapshot = await memory.snapshot()
        assert len(snapshot) == 10
        assert [m.id for m in snapshot] == [m.id for m in sent]

    @pytest.mark.asyncio
    async def test_buffers_are_independent(self):
        memory = MemoryStore()
        await memory.append(Message.user("short-1"))
        await memory.append(Message.assistant("long-1"), buffer="long_term")
        await memory.append(Message.user("short-2"))

        short = await memory.snapshot("short_term")
        long = await memory.snapshot("long_term")

        assert [m.content for m in short] == ["short-1", "short-2"]
        assert [m.content for m in long] == ["long-1"]
        assert await memory.counts() == {"short_term": 2, "long_term": 1}

    @pytest.mark.asyncio
    async def test_snapshot_is_a_copy(self):
        memory = MemoryStore()
        await memory.append(Message.user("one"))
        snapshot = await memory.snapshot()
        await memory.append(Message.user("two"))

        assert len(snapshot) == 1
        assert len(await memory.snapshot()) == 2

    @pytest.mark.asyncio
    async def test_short_term_evicts_oldest(self):
        memory = MemoryStore(short_term_limit=3)
        for i in range(5):
            await memory.append(Message.user(f"m{i}"))

        snapshot = await memory.snapshot()
        assert [m.content for m in snapshot] == ["m2", "m3", "m4"]
        assert memory.evicted_count == 2

    @pytest.mark.asyncio
    async def test_long_term_is_unbounded(self):
        memory = MemoryStore(short_term_limit=2)
        for i in range(5):
            await memory.append(Message.assistant(f"a{i}"), buffer="long_term")
        assert len(await memory.snapshot("long_term")) == 5

    @pytest.mark.asyncio
    async def test_unknown_buffer_rejected(self):
        memory = MemoryStore()
        with pytest.raises(ValueError):
            await memory.append(Message.user("x"), buffer="scratch")

    def test_invalid_limit(self):
        with pytest.raises(ValueError):
            MemoryStore(short_term_limit=0)

    @pytest.mark.asyncio
    async def test_concurrent_appends_all_recorded(self):
        memory = MemoryStore()
        await asyncio.gather(*(memory.append(Message.user(str(i))) for i in range(50)))
        assert len(await memory.snapshot()) == 50


class TestAsyncReadWriteLock:
    """Tests for AsyncReadWriteLock."""

    @pytest.mark.asyncio
    async def test_readers_share(self):
        lock = AsyncReadWriteLock()
        async with lock.read():
            async with lock.read():
                assert lock.readers == 2
        assert lock.readers == 0

    @pytest.mark.asyncio
    async def test_writer_waits_for_readers(self):
        lock = AsyncReadWriteLock()
        order = []
        reader_entered = asyncio.Event()
        release_reader = asyncio.Event()

        async def reader():
            async with lock.read():
                reader_entered.set()
                await release_reader.wait()
                order.append("reader-done")

        async def writer():
            await reader_entered.wait()
            async with lock.write():
                order.append("writer")

        tasks = [asyncio.create_task(reader()), asyncio.create_task(writer())]
        await asyncio.sleep(0.01)
        assert order == []
        release_reader.set()
        await asyncio.gather(*tasks)

        assert order == ["reader-done", "writer"]
        assert not lock.write_locked
