"""
Purpose:
- Frame progress events for the HTTP stream: `data: <json>\\n\\n` per event.
- Track the channel state so nothing is sent after the terminal "done" frame.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import AsyncIterator, Awaitable, Callable, Optional

from .errors import TransportError
from .schema import DoneEvent, ProgressEvent

logger = logging.getLogger(__name__)

FRAME_PREFIX = "data: "


def encode_frame(event: ProgressEvent) -> str:
    return f"{FRAME_PREFIX}{event.model_dump_json()}\n\n"


class ChannelState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


class ProgressChannel:
    """OPEN -> emit* -> CLOSED. The only way out of OPEN is close()."""

    def __init__(self):
        self.state = ChannelState.OPEN
        self.emitted = 0

    @property
    def closed(self) -> bool:
        return self.state is ChannelState.CLOSED

    def emit(self, event: ProgressEvent) -> str:
        if self.closed:
            raise TransportError("Progress channel is closed")
        if isinstance(event, DoneEvent):
            return self.close(event)
        self.emitted += 1
        return encode_frame(event)

    def close(self, done: DoneEvent) -> str:
        if self.closed:
            raise TransportError("Progress channel is already closed")
        self.state = ChannelState.CLOSED
        return encode_frame(done)


async def stream_progress(
    events: AsyncIterator[ProgressEvent],
    is_disconnected: Optional[Callable[[], Awaitable[bool]]] = None,
) -> AsyncIterator[str]:
    """
    Turn batch events into frames. Once the consumer is gone no further image
    is dispatched; the batch generator is closed either way.
    """
    channel = ProgressChannel()
    try:
        async for event in events:
            yield channel.emit(event)
            if channel.closed:
                break
            if is_disconnected is not None and await is_disconnected():
                raise TransportError("Client disconnected")
    except TransportError as e:
        logger.warning(f"Progress stream stopped after {channel.emitted} events: {e}")
    finally:
        aclose = getattr(events, "aclose", None)
        if aclose is not None:
            await aclose()
