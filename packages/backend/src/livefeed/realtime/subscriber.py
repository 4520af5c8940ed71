"""Subscriber handle — one live /events connection.

Learn: The hub never writes to the network directly. Each subscriber owns
a bounded asyncio.Queue of framed bytes; the streaming response drains it.
That keeps publish() non-blocking: queuing a frame is put_nowait(), and a
full queue means the client stopped reading, so the write fails and the
hub drops the subscriber.

A None sentinel in the queue tells the stream to end.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import Optional

from livefeed.realtime.errors import SubscriberWriteError
from livefeed.realtime.heartbeat import Heartbeat


class Subscriber:
    """Represents one connected stream. Hashable by identity."""

    def __init__(self, queue_size: int = 256, client: Optional[str] = None):
        self.id = uuid.uuid4().hex
        self.client = client
        self.connected_at = datetime.now(timezone.utc)
        self.heartbeat: Optional[Heartbeat] = None
        self.closed = False

        # Holds framed bytes, plus one None sentinel on close
        self._queue: asyncio.Queue[Optional[bytes]] = asyncio.Queue(maxsize=queue_size)

    def __repr__(self) -> str:
        return f"<Subscriber {self.id[:8]} client={self.client} closed={self.closed}>"

    @property
    def connected_seconds(self) -> float:
        """How long this subscriber has been connected."""
        return (datetime.now(timezone.utc) - self.connected_at).total_seconds()

    @property
    def pending(self) -> int:
        """Frames queued but not yet consumed by the stream."""
        return self._queue.qsize()

    def write(self, frame: bytes) -> None:
        """Queue a frame without waiting. Raises SubscriberWriteError."""
        if self.closed:
            raise SubscriberWriteError(self.id, "closed")
        try:
            self._queue.put_nowait(frame)
        except asyncio.QueueFull:
            raise SubscriberWriteError(self.id, "queue full") from None

    def close(self) -> None:
        """Mark closed and wake the stream. Idempotent.

        Frames still queued are discarded so the sentinel always fits.
        This includes shutdown: hub.close() drops unsent events, it
        does not flush them (delivery is best-effort, no replay).
        """
        if self.closed:
            return
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)

    async def next_frame(self) -> Optional[bytes]:
        """Wait for the next frame. None means the stream is over."""
        if self.closed and self._queue.empty():
            return None
        return await self._queue.get()
