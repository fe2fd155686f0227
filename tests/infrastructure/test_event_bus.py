import asyncio

import pytest

from funding_stages.adapters.messaging.event_bus import InMemoryEventBus
from funding_stages.domain.events import DomainEvent, StageCompleted, StageSelected


@pytest.mark.asyncio
async def test_event_bus_dispatches():
    bus = InMemoryEventBus()
    received = {}

    async def handler(evt: StageCompleted):
        received["stage_id"] = evt.stage_id

    bus.subscribe(StageCompleted, handler)
    await bus.start()
    await bus.publish(StageCompleted(owner_id="s1", stage_id="seed", completed_on="2024-01-01"))
    await bus.drain()
    await bus.stop()

    assert received["stage_id"] == "seed"


@pytest.mark.asyncio
async def test_dispatches_inline_when_not_started():
    bus = InMemoryEventBus()
    received = []

    async def handler(evt):
        received.append(evt)

    bus.subscribe(StageSelected, handler)
    await bus.publish(StageSelected(stage_id="seed"))

    assert len(received) == 1
    assert bus.published_count == 1


@pytest.mark.asyncio
async def test_catch_all_and_type_filtering():
    bus = InMemoryEventBus()
    everything = []
    selected_only = []

    async def on_any(evt):
        everything.append(evt.event_type)

    async def on_selected(evt):
        selected_only.append(evt.event_type)

    bus.subscribe(DomainEvent, on_any)
    bus.subscribe(StageSelected, on_selected)

    await bus.publish(StageSelected(stage_id="a"))
    await bus.publish(StageCompleted(stage_id="a"))

    assert everything == ["StageSelected", "StageCompleted"]
    assert selected_only == ["StageSelected"]


@pytest.mark.asyncio
async def test_failing_handler_is_isolated():
    bus = InMemoryEventBus()
    received = []

    async def broken(evt):
        raise RuntimeError("boom")

    async def healthy(evt):
        received.append(evt)

    bus.subscribe(StageCompleted, broken)
    bus.subscribe(StageCompleted, healthy)
    await bus.publish(StageCompleted(stage_id="seed"))

    assert len(received) == 1
    assert bus.failed_handler_count == 1


@pytest.mark.asyncio
async def test_unsubscribe_and_stop_drains_queue():
    bus = InMemoryEventBus()
    received = []

    async def slow(evt):
        await asyncio.sleep(0)
        received.append(evt)

    bus.subscribe(StageCompleted, slow)
    assert bus.subscriber_count(StageCompleted) == 1

    await bus.start()
    for i in range(5):
        await bus.publish(StageCompleted(stage_id=f"s{i}"))
    await bus.stop()

    assert len(received) == 5

    bus.unsubscribe(StageCompleted, slow)
    assert bus.subscriber_count(StageCompleted) == 0
