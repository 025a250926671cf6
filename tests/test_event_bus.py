import asyncio

import pytest

from conftest import Recorder
from saintdaniels.shared.core.event_bus import EventBus


@pytest.mark.asyncio
async def test_publish_reaches_subscribers():
    bus = EventBus()
    first, second = Recorder(), Recorder()
    await bus.subscribe("points.added", first)
    await bus.subscribe("points.added", second)

    await bus.publish("points.added", {"amount": 10})
    assert await bus.wait_until_idle()

    assert first.payloads == [{"amount": 10}]
    assert second.payloads == [{"amount": 10}]


@pytest.mark.asyncio
async def test_failing_handler_does_not_stop_others(caplog):
    bus = EventBus()
    recorder = Recorder()

    async def broken(payload):
        raise RuntimeError("render failed")

    await bus.subscribe("state.changed", broken)
    await bus.subscribe("state.changed", recorder)

    await bus.publish("state.changed", {"change": "x"})
    assert await bus.wait_until_idle()

    assert recorder.payloads == [{"change": "x"}]
    assert "render failed" in caplog.text or "broken" in caplog.text


@pytest.mark.asyncio
async def test_duplicate_subscription_is_ignored():
    bus = EventBus()
    recorder = Recorder()
    await bus.subscribe("goal.added", recorder)
    await bus.subscribe("goal.added", recorder)
    assert bus.subscriber_count("goal.added") == 1

    await bus.publish("goal.added", {})
    await bus.wait_until_idle()
    assert len(recorder.payloads) == 1


@pytest.mark.asyncio
async def test_unsubscribe_stops_delivery():
    bus = EventBus()
    recorder = Recorder()
    await bus.subscribe("goal.added", recorder)
    await bus.unsubscribe("goal.added", recorder)

    await bus.publish("goal.added", {})
    await bus.wait_until_idle()
    assert recorder.payloads == []


@pytest.mark.asyncio
async def test_publish_without_subscribers_is_silent():
    bus = EventBus()
    await bus.publish("rewards.loaded", {"count": 0})
    assert await bus.wait_until_idle()


@pytest.mark.asyncio
async def test_clear_removes_all_topics():
    bus = EventBus()
    await bus.subscribe("a", Recorder())
    await bus.subscribe("b", Recorder())
    bus.clear()
    assert bus.subscriber_count("a") == 0
    assert bus.subscriber_count("b") == 0


@pytest.mark.asyncio
async def test_slow_delivery_does_not_reorder_later_events():
    bus = EventBus()
    received = []

    async def render(payload):
        if not received and payload["balance"] == 2510:
            await asyncio.sleep(0.05)
        received.append(payload["balance"])

    await bus.subscribe("state.changed", render)
    await bus.publish("state.changed", {"balance": 2510})
    await bus.publish("state.changed", {"balance": 2530})
    assert await bus.wait_until_idle()

    assert received == [2510, 2530]


@pytest.mark.asyncio
async def test_slow_subscriber_does_not_hold_up_others():
    bus = EventBus()
    release = asyncio.Event()
    recorder = Recorder()

    async def stuck(payload):
        await release.wait()

    await bus.subscribe("points.added", stuck)
    await bus.subscribe("points.added", recorder)
    await bus.publish("points.added", {"amount": 1})
    await asyncio.sleep(0.01)

    assert recorder.payloads == [{"amount": 1}]
    release.set()
    assert await bus.wait_until_idle()


@pytest.mark.asyncio
async def test_handler_may_publish_while_draining():
    bus = EventBus()
    recorder = Recorder()

    async def relay(payload):
        await bus.publish("state.changed", {"change": payload["topic"]})

    await bus.subscribe("points.added", relay)
    await bus.subscribe("state.changed", recorder)
    await bus.publish("points.added", {"topic": "points.added"})
    assert await bus.wait_until_idle()

    assert recorder.changes == ["points.added"]
