"""
Per-request event channel.

Connects the generation task (producer) to the HTTP response body (consumer).
The consumer flips the liveness flag when the client goes away; from then on
the producer's writes are dropped while it keeps running to completion.
"""

import asyncio
from typing import AsyncIterator, Union

from streamchat.models.chat import DeltaEvent, DoneEvent, ThinkingEvent

ChannelEvent = Union[DeltaEvent, ThinkingEvent, DoneEvent]

_CLOSED = object()


class EventChannel:
    """Single-consumer queue of stream events with a liveness flag."""

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._connected = True
        self._closed = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_closed(self) -> bool:
        return self._closed

    def send(self, event: ChannelEvent) -> bool:
        """Queue an event. Returns False if it was dropped."""
        if not self._connected or self._closed:
            return False
        self._queue.put_nowait(event)
        return True

    def disconnect(self) -> None:
        """Mark the consumer as gone and discard anything not yet read."""
        self._connected = False
        while not self._queue.empty():
            self._queue.get_nowait()

    def close(self) -> None:
        """End the stream. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(_CLOSED)

    async def __aiter__(self) -> AsyncIterator[ChannelEvent]:
        while self._connected:
            item = await self._queue.get()
            if item is _CLOSED:
                return
            yield item
