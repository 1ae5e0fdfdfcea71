"""StreamManager -- per-session event buffering and SSE subscriber management."""

from __future__ import annotations

import asyncio
from collections import defaultdict, deque
from typing import AsyncGenerator, Optional

from .events import SSEEvent

# Replay window per session. Counter frames are frequent, so keep it bounded.
BUFFER_SIZE = 500


class StreamManager:
    """Manages SSE event distribution for open view sessions.

    Each session_id has:
    - A list of subscriber queues (asyncio.Queue instances)
    - A bounded buffer of recent events for replay on reconnect

    A ``None`` in a subscriber queue means the session was closed.
    """

    def __init__(self, buffer_size: int = BUFFER_SIZE) -> None:
        self._buffer_size = buffer_size
        self._subscribers: dict[str, list[asyncio.Queue[Optional[SSEEvent]]]] = defaultdict(list)
        self._buffers: dict[str, deque[SSEEvent]] = {}

    def _buffer(self, session_id: str) -> deque[SSEEvent]:
        if session_id not in self._buffers:
            self._buffers[session_id] = deque(maxlen=self._buffer_size)
        return self._buffers[session_id]

    async def subscribe(self, session_id: str) -> asyncio.Queue[Optional[SSEEvent]]:
        """Create and return a new subscriber queue for a session."""
        queue: asyncio.Queue[Optional[SSEEvent]] = asyncio.Queue()
        self._subscribers[session_id].append(queue)
        return queue

    async def unsubscribe(self, session_id: str, queue: asyncio.Queue[Optional[SSEEvent]]) -> None:
        """Remove a subscriber queue from a session."""
        subs = self._subscribers.get(session_id, [])
        if queue in subs:
            subs.remove(queue)

    def subscriber_count(self, session_id: str) -> int:
        return len(self._subscribers.get(session_id, []))

    def publish(self, session_id: str, event: SSEEvent) -> None:
        """Broadcast without awaiting. Safe to call from synchronous callbacks."""
        self._buffer(session_id).append(event)
        for queue in self._subscribers.get(session_id, []):
            queue.put_nowait(event)

    async def emit(self, session_id: str, event: SSEEvent) -> None:
        """Broadcast an event to all subscribers and buffer it for replay."""
        self.publish(session_id, event)

    def close(self, session_id: str) -> None:
        """End every open stream for a session and drop its buffer."""
        for queue in self._subscribers.pop(session_id, []):
            queue.put_nowait(None)
        self._buffers.pop(session_id, None)

    async def event_generator(
        self, session_id: str, last_event_id: int | None = None
    ) -> AsyncGenerator[str, None]:
        """Async generator yielding SSE strings for a session.

        If last_event_id is provided, replays buffered events with
        sequence_id > last_event_id before switching to live events.
        """
        queue = await self.subscribe(session_id)
        try:
            # SSE comment as connection heartbeat (ignored by browsers)
            yield ": connected\n\n"

            # Replay missed events from buffer
            replayed_up_to = -1
            if last_event_id is not None:
                for event in list(self._buffers.get(session_id, [])):
                    if event.sequence_id > last_event_id:
                        replayed_up_to = event.sequence_id
                        yield event.to_sse_string()

            # Stream live events until the session closes
            while True:
                event = await queue.get()
                if event is None:
                    break
                if event.sequence_id <= replayed_up_to:
                    continue
                yield event.to_sse_string()
        finally:
            await self.unsubscribe(session_id, queue)
