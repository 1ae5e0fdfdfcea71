"""Tests for the StreamManager pub/sub and replay system."""

import asyncio

import pytest

from metamech.streaming.events import SiteEventType, SSEEvent
from metamech.streaming.manager import StreamManager


def _make_event(seq: int, event_type: SiteEventType = SiteEventType.ROI_FRAME) -> SSEEvent:
    return SSEEvent(event_type=event_type, data={"seq": seq}, sequence_id=seq)


class TestStreamManager:
    @pytest.mark.asyncio
    async def test_emit_delivers_to_every_subscriber(self):
        manager = StreamManager()
        q1 = await manager.subscribe("session-1")
        q2 = await manager.subscribe("session-1")
        await manager.emit("session-1", _make_event(1))
        r1 = await asyncio.wait_for(q1.get(), timeout=1.0)
        r2 = await asyncio.wait_for(q2.get(), timeout=1.0)
        assert r1.sequence_id == r2.sequence_id == 1

    @pytest.mark.asyncio
    async def test_publish_is_synchronous(self):
        manager = StreamManager()
        queue = await manager.subscribe("session-1")
        manager.publish("session-1", _make_event(1))
        assert queue.qsize() == 1

    @pytest.mark.asyncio
    async def test_unsubscribe_stops_delivery(self):
        manager = StreamManager()
        queue = await manager.subscribe("session-1")
        await manager.unsubscribe("session-1", queue)
        await manager.emit("session-1", _make_event(1))
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_subscriber_count_follows_subscriptions(self):
        manager = StreamManager()
        assert manager.subscriber_count("session-1") == 0
        queue = await manager.subscribe("session-1")
        assert manager.subscriber_count("session-1") == 1
        await manager.unsubscribe("session-1", queue)
        assert manager.subscriber_count("session-1") == 0

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self):
        manager = StreamManager()
        queue = await manager.subscribe("session-1")
        await manager.emit("session-2", _make_event(1))
        assert queue.empty()

    @pytest.mark.asyncio
    async def test_replay_missed_events_on_reconnect(self):
        manager = StreamManager()
        for seq in (1, 2, 3):
            await manager.emit("session-1", _make_event(seq))

        gen = manager.event_generator("session-1", last_event_id=1)
        heartbeat = await gen.__anext__()
        second = await gen.__anext__()
        third = await gen.__anext__()

        assert heartbeat.startswith(":")
        assert "id: 2" in second
        assert "id: 3" in third
        await gen.aclose()

    def test_buffer_is_bounded(self):
        manager = StreamManager(buffer_size=3)
        for seq in range(1, 6):
            manager.publish("session-1", _make_event(seq))
        assert [e.sequence_id for e in manager._buffers["session-1"]] == [3, 4, 5]

    @pytest.mark.asyncio
    async def test_close_ends_open_streams(self):
        manager = StreamManager()
        gen = manager.event_generator("session-1")
        await gen.__anext__()

        manager.publish("session-1", _make_event(1, SiteEventType.SESSION_CLOSED))
        manager.close("session-1")

        chunks = [chunk async for chunk in gen]
        assert len(chunks) == 1
        assert "event: session_closed" in chunks[0]
        assert "session-1" not in manager._buffers


class TestSSEEvent:
    def test_wire_format(self):
        event = SSEEvent(
            event_type=SiteEventType.ROI_SETTLED,
            data={"display": {"weekly_savings": 3750}},
            sequence_id=7,
        )
        wire = event.to_sse_string()
        assert wire.startswith("event: roi_settled\n")
        assert '"weekly_savings": 3750' in wire
        assert "\nid: 7\n\n" in wire
