"""Heartbeat — periodic keepalive ping per subscriber.

Learn: Proxies and load balancers close HTTP connections that stay silent
too long. Every subscriber gets its own asyncio task that writes an
`event: ping` frame every interval until it's stopped.

Pings go through the hub's deliver() path, the same one publish() uses.
A failed ping write disconnects the subscriber exactly like a failed
publish write, and the loop exits.
"""

import asyncio
import time
from typing import TYPE_CHECKING, Callable, Optional

import structlog

from livefeed.realtime.codec import encode_ping

if TYPE_CHECKING:
    from livefeed.realtime.subscriber import Subscriber

logger = structlog.get_logger()

Deliver = Callable[["Subscriber", bytes], bool]


def now_ms() -> int:
    return int(time.time() * 1000)


class Heartbeat:
    """One cancellable ping loop bound to one subscriber."""

    def __init__(self, subscriber: "Subscriber", deliver: Deliver, interval: float):
        self.subscriber = subscriber
        self.interval = interval
        self._deliver = deliver
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    @classmethod
    def start(cls, subscriber: "Subscriber", deliver: Deliver, interval: float) -> "Heartbeat":
        heartbeat = cls(subscriber, deliver, interval)
        heartbeat._task = asyncio.create_task(
            heartbeat._run(), name=f"heartbeat-{subscriber.id[:8]}"
        )
        return heartbeat

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def _run(self) -> None:
        while not self._stopped:
            await asyncio.sleep(self.interval)
            if self._stopped:
                return
            if not self._deliver(self.subscriber, encode_ping(now_ms())):
                logger.debug("heartbeat.write_failed", subscriber_id=self.subscriber.id)
                return

    def stop(self) -> None:
        """Cancel the ping loop. Idempotent.

        Once this returns the loop can't write again: it is either
        cancelled at its sleep or sees _stopped before writing.
        """
        if self._stopped:
            return
        self._stopped = True
        if self._task is not None and not self._task.done():
            if self._task is not asyncio.current_task():
                self._task.cancel()

    async def wait_stopped(self) -> None:
        """Wait for the task to finish after stop(). Used on shutdown."""
        if self._task is None or self._task is asyncio.current_task():
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass
