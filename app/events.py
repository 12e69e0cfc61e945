"""In-memory publish/subscribe channels for real-time notifications."""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import Any, Dict, List

logger = logging.getLogger("users.events")

USER_CREATED = "USER_CREATED"

_CLOSED = object()


class EventStream:
    """Live stream of the payloads published on one topic for one subscriber.

    The stream is bound to the event loop it was created on. Payloads are
    queued without bound, in publish order, until the stream is closed.
    """

    def __init__(self, bus: "EventBus", topic: str) -> None:
        self._bus = bus
        self._topic = topic
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[Any] = asyncio.Queue()
        self._closed = False

    @property
    def topic(self) -> str:
        return self._topic

    @property
    def closed(self) -> bool:
        return self._closed

    def deliver(self, payload: Any) -> None:
        """Queue ``payload`` on the subscriber's loop without waiting for it."""

        self._loop.call_soon_threadsafe(self._queue.put_nowait, payload)

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> Any:
        if self._closed:
            raise StopAsyncIteration
        payload = await self._queue.get()
        if payload is _CLOSED:
            raise StopAsyncIteration
        return payload

    async def aclose(self) -> None:
        """Detach from the bus and stop iteration."""

        if self._closed:
            return
        self._closed = True
        self._bus.detach(self)
        self._queue.put_nowait(_CLOSED)

    async def __aenter__(self) -> "EventStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class EventBus:
    """Fan out published payloads to every subscriber attached to a topic."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[EventStream]] = {}

    def publish(self, topic: str, payload: Any) -> None:
        """Send ``payload`` to the subscribers attached to ``topic`` right now."""

        with self._lock:
            subscribers = list(self._subscribers.get(topic, ()))

        for stream in subscribers:
            try:
                stream.deliver(payload)
            except RuntimeError:
                logger.warning("Detaching subscriber on %s: its event loop is closed", topic)
                self.detach(stream)

    def subscribe(self, topic: str) -> EventStream:
        """Attach a new subscriber to ``topic``; must be called on a running loop."""

        stream = EventStream(self, topic)
        with self._lock:
            self._subscribers.setdefault(topic, []).append(stream)
        logger.debug("Subscriber attached to %s", topic)
        return stream

    def detach(self, stream: EventStream) -> None:
        with self._lock:
            streams = self._subscribers.get(stream.topic)
            if not streams or stream not in streams:
                return
            streams.remove(stream)
            if not streams:
                del self._subscribers[stream.topic]
        logger.debug("Subscriber detached from %s", stream.topic)

    def subscriber_count(self, topic: str) -> int:
        with self._lock:
            return len(self._subscribers.get(topic, ()))


__all__ = ["EventBus", "EventStream", "USER_CREATED"]
