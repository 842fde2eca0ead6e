"""
Stream buffer.

Coalesces a firehose of small model fragments into fewer ``delta`` events.
Text is flushed once it is long enough, reaches a sentence or paragraph
boundary, or has been waiting too long. Reasoning text is never coalesced:
pending text is flushed first, then each reasoning increment is forwarded
as its own ``thinking`` event.
"""

import re
import time
from typing import AsyncIterator, Callable, Optional, Union

from streamchat.core.exceptions import UpstreamError
from streamchat.models.chat import DeltaEvent, Fragment, ThinkingEvent

DEFAULT_MIN_CHARS = 60
DEFAULT_MAX_WAIT = 0.180  # seconds

# Paragraph break anywhere, or terminal punctuation at the end of the buffer
BOUNDARY_RE = re.compile(r"\n\n|[。！？.!?]\s*$")

BufferedEvent = Union[DeltaEvent, ThinkingEvent]


class StreamBuffer:
    """Size/boundary/time coalescing policy for streamed text."""

    def __init__(
        self,
        min_chars: int = DEFAULT_MIN_CHARS,
        max_wait: float = DEFAULT_MAX_WAIT,
        boundary: re.Pattern = BOUNDARY_RE,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.min_chars = min_chars
        self.max_wait = max_wait
        self.boundary = boundary
        self._clock = clock
        self._pending: list[str] = []
        self._pending_len = 0
        self._text_parts: list[str] = []
        self._reasoning_parts: list[str] = []
        self._last_flush = clock()

    @property
    def full_text(self) -> str:
        """All main text observed so far."""
        return "".join(self._text_parts)

    @property
    def full_reasoning(self) -> str:
        """All reasoning text observed so far."""
        return "".join(self._reasoning_parts)

    @property
    def pending(self) -> str:
        return "".join(self._pending)

    def feed(self, fragment: Fragment) -> list[BufferedEvent]:
        """Process one fragment and return the events it releases."""
        events: list[BufferedEvent] = []

        if fragment.reasoning:
            self._reasoning_parts.append(fragment.reasoning)
            events.extend(self._flush())
            events.append(ThinkingEvent(thinking=fragment.reasoning))

        if fragment.text:
            self._pending.append(fragment.text)
            self._pending_len += len(fragment.text)
            self._text_parts.append(fragment.text)
            if self._should_flush():
                events.extend(self._flush())

        return events

    def finish(self) -> list[BufferedEvent]:
        """Flush whatever text is still buffered."""
        return self._flush()

    def _should_flush(self) -> bool:
        if not self._pending_len:
            return False
        if self._pending_len >= self.min_chars:
            return True
        if self.boundary.search(self.pending):
            return True
        return self._clock() - self._last_flush >= self.max_wait

    def _flush(self) -> list[BufferedEvent]:
        if not self._pending_len:
            return []
        text = self.pending
        self._pending.clear()
        self._pending_len = 0
        self._last_flush = self._clock()
        return [DeltaEvent(text=text)]


async def buffer_fragments(
    fragments: AsyncIterator[Fragment],
    buffer: Optional[StreamBuffer] = None,
) -> AsyncIterator[BufferedEvent]:
    """
    Drive a buffer over an async fragment stream, yielding events in order.

    Text still buffered when the stream ends is always flushed, also when the
    provider fails; the UpstreamError is re-raised after that final flush.
    """
    buffer = buffer if buffer is not None else StreamBuffer()
    try:
        async for fragment in fragments:
            for event in buffer.feed(fragment):
                yield event
    except UpstreamError:
        for event in buffer.finish():
            yield event
        raise
    for event in buffer.finish():
        yield event
