"""Tests for AsyncEventBus and EventStore."""

from __future__ import annotations

import logging

import pytest

from react_engine.domain.events import (
    DomainEvent,
    RunFinished,
    RunStarted,
    ToolFailed,
)
from react_engine.infrastructure.event_bus import AsyncEventBus, EventStore


class TestAsyncEventBus:
    """Subscription, dispatch order and handler isolation."""

    @pytest.mark.asyncio
    async def test_sync_and_async_handlers(self) -> None:
        bus = AsyncEventBus()
        received: list[str] = []

        def sync_handler(event: DomainEvent) -> None:
            received.append("sync")

        async def async_handler(event: DomainEvent) -> None:
            received.append("async")

        bus.subscribe(RunStarted, sync_handler)
        bus.subscribe(RunStarted, async_handler)
        await bus.publish(RunStarted(run_id="r1"))
        assert received == ["sync", "async"]

    @pytest.mark.asyncio
    async def test_only_matching_type_dispatched(self) -> None:
        bus = AsyncEventBus()
        received: list[DomainEvent] = []
        bus.subscribe(ToolFailed, received.append)
        await bus.publish(RunStarted())
        await bus.publish(ToolFailed(tool_name="get_revenue"))
        assert len(received) == 1
        assert isinstance(received[0], ToolFailed)

    @pytest.mark.asyncio
    async def test_global_handlers_run_first(self) -> None:
        bus = AsyncEventBus()
        order: list[str] = []
        bus.subscribe(RunStarted, lambda e: order.append("typed"))
        bus.subscribe_all(lambda e: order.append("global"))
        await bus.publish(RunStarted())
        assert order == ["global", "typed"]

    @pytest.mark.asyncio
    async def test_failing_handler_is_isolated(self, caplog: pytest.LogCaptureFixture) -> None:
        bus = AsyncEventBus()
        received: list[DomainEvent] = []

        async def broken(event: DomainEvent) -> None:
            raise RuntimeError("sink down")

        bus.subscribe(RunFinished, broken)
        bus.subscribe(RunFinished, received.append)
        with caplog.at_level(logging.ERROR, logger="react_engine.infrastructure.event_bus"):
            await bus.publish(RunFinished(success=True))

        assert len(received) == 1
        assert "RunFinished" in caplog.text

    @pytest.mark.asyncio
    async def test_publish_many_keeps_order(self) -> None:
        bus = AsyncEventBus()
        seen: list[str] = []
        bus.subscribe_all(lambda e: seen.append(e.run_id))
        await bus.publish_many([RunStarted(run_id="a"), RunFinished(run_id="b")])
        assert seen == ["a", "b"]

    def test_unsubscribe(self) -> None:
        bus = AsyncEventBus()

        def handler(event: DomainEvent) -> None:
            pass

        bus.subscribe(RunStarted, handler)
        assert bus.unsubscribe(RunStarted, handler)
        assert not bus.unsubscribe(RunStarted, handler)
        assert not bus.unsubscribe(ToolFailed, handler)

    def test_handler_count_and_clear(self) -> None:
        bus = AsyncEventBus()
        bus.subscribe(RunStarted, lambda e: None)
        bus.subscribe(ToolFailed, lambda e: None)
        bus.subscribe_all(lambda e: None)
        assert bus.handler_count(RunStarted) == 1
        assert bus.handler_count() == 3
        bus.clear()
        assert bus.handler_count() == 0


class TestEventStore:
    """Append, bounded size and queries."""

    def test_append_and_latest(self) -> None:
        store = EventStore()
        assert store.latest is None
        store.append(RunStarted(run_id="r1"))
        store.append(RunFinished(run_id="r1"))
        assert len(store) == 2
        assert isinstance(store.latest, RunFinished)

    def test_max_size_drops_oldest(self) -> None:
        store = EventStore(max_size=2)
        for run_id in ("a", "b", "c"):
            store.append(RunStarted(run_id=run_id))
        assert [e.run_id for e in store.query()] == ["b", "c"]

    def test_query_filters(self) -> None:
        store = EventStore()
        store.append(RunStarted(run_id="r1"))
        store.append(ToolFailed(run_id="r1", tool_name="t1"))
        store.append(ToolFailed(run_id="r2", tool_name="t2"))
        store.append(ToolFailed(run_id="r1", tool_name="t3"))

        assert len(store.query(event_type=ToolFailed)) == 3
        assert len(store.query(run_id="r1")) == 3
        last = store.query(event_type=ToolFailed, run_id="r1", limit=1)
        assert [e.tool_name for e in last] == ["t3"]

    def test_clear(self) -> None:
        store = EventStore()
        store.append(RunStarted())
        store.clear()
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_store_wired_to_bus(self) -> None:
        bus = AsyncEventBus()
        store = EventStore()
        bus.subscribe_all(store.append)
        await bus.publish(RunStarted(run_id="r1", agent_name="analyst"))
        (event,) = store.query(event_type=RunStarted)
        assert event.agent_name == "analyst"
