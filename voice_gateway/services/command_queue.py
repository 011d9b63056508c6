"""Bounded FIFO queue between the ingestion endpoints and the pipeline.

Producers never block: a full queue is reported immediately so the
endpoint can tell the client to try again. The single consumer awaits
``get()``. ``close()`` can be called any number of times; once closed,
the consumer drains what is left and then gets SourceClosedError.
"""

from __future__ import annotations

import asyncio
import logging

from voice_gateway.core.interfaces import QueueFullError, SourceClosedError

logger = logging.getLogger(__name__)

_CLOSED = object()


class CommandQueue:
    """Bounded queue of command payloads with non-blocking enqueue."""

    def __init__(self, maxsize: int = 10) -> None:
        """Initialize queue.

        Args:
            maxsize: Capacity; enqueue beyond it is rejected
        """
        self.maxsize = maxsize
        self._queue: asyncio.Queue[object] = asyncio.Queue(maxsize=maxsize)
        self._closed = False
        self._marker_queued = False

    @property
    def closed(self) -> bool:
        return self._closed

    def qsize(self) -> int:
        """Number of queued payloads."""
        return self._queue.qsize() - (1 if self._marker_queued else 0)

    def put_nowait(self, payload: bytes) -> None:
        """Enqueue without waiting.

        Raises:
            QueueFullError: If the queue is at capacity
            SourceClosedError: If the queue has been closed
        """
        if self._closed:
            raise SourceClosedError("command queue closed")
        try:
            self._queue.put_nowait(payload)
        except asyncio.QueueFull:
            raise QueueFullError("queue full, try again") from None

    async def get(self) -> bytes:
        """Wait for the next payload.

        Raises:
            SourceClosedError: If closed and no payloads remain
        """
        if self._closed and self._queue.empty():
            raise SourceClosedError("command queue closed")

        item = await self._queue.get()
        if item is _CLOSED:
            # Leave the marker for any later getter
            self._queue.put_nowait(_CLOSED)
            raise SourceClosedError("command queue closed")
        return item  # type: ignore[return-value]

    def close(self) -> None:
        """Close the queue; only the first call has an effect."""
        if self._closed:
            return
        self._closed = True
        # Wakes a consumer blocked on an empty queue. A full queue has no
        # waiting consumer, and get() sees the flag once it is drained.
        try:
            self._queue.put_nowait(_CLOSED)
            self._marker_queued = True
        except asyncio.QueueFull:
            pass
        logger.info("Command queue closed")
