"""Broadcast hub — subscriber lifecycle and fan-out.

Learn: The hub owns everything stateful:

    subscribe()   → new Subscriber, registered, heartbeat started
    stream()      → yields the subscriber's frames until it's closed
    publish()     → normalize, frame once, write to every live subscriber
    disconnect()  → unregister, stop heartbeat, close queue (idempotent)

Delivery is best-effort and fire-and-forget. Nothing is buffered for
subscribers that connect later, and a failed write is never retried:
the subscriber is dropped instead.

There's one hub per app (app.state.hub), never a module-level global,
so tests can build as many isolated hubs as they like.
"""

import asyncio
from typing import Any, AsyncIterator, Optional

import structlog

from livefeed.realtime.codec import encode_comment, encode_message, normalize
from livefeed.realtime.errors import HubClosedError, SubscriberWriteError
from livefeed.realtime.heartbeat import Heartbeat
from livefeed.realtime.registry import SubscriberRegistry
from livefeed.realtime.subscriber import Subscriber

logger = structlog.get_logger()

DEFAULT_HEARTBEAT_INTERVAL = 15.0
DEFAULT_QUEUE_SIZE = 256


class BroadcastHub:
    """In-process fan-out of published events to SSE subscribers."""

    def __init__(
        self,
        heartbeat_interval: float = DEFAULT_HEARTBEAT_INTERVAL,
        queue_size: int = DEFAULT_QUEUE_SIZE,
    ):
        self.heartbeat_interval = heartbeat_interval
        self.queue_size = queue_size
        self.registry = SubscriberRegistry()
        self.closed = False

    @property
    def client_count(self) -> int:
        return len(self.registry)

    # ─── Lifecycle ───────────────────────────────────────────

    def subscribe(self, client: Optional[str] = None) -> Subscriber:
        """Create, register and start heartbeating a new subscriber.

        Must be called from inside the event loop (the heartbeat is a task).
        """
        if self.closed:
            raise HubClosedError("Hub is shut down")

        subscriber = Subscriber(queue_size=self.queue_size, client=client)
        # Heartbeat first: a registered subscriber always has one to stop
        subscriber.heartbeat = Heartbeat.start(
            subscriber, self.deliver, self.heartbeat_interval
        )
        self.registry.register(subscriber)
        logger.info(
            "hub.subscribed",
            subscriber_id=subscriber.id,
            client=client,
            clients=self.client_count,
        )
        return subscriber

    async def stream(self, subscriber: Subscriber) -> AsyncIterator[bytes]:
        """Yield framed bytes for one subscriber until it disconnects.

        This is the long-lived half of a subscription. When the consumer
        goes away the generator is cancelled or closed, and the finally
        block tears the subscriber down.
        """
        try:
            yield encode_comment("connected")
            while True:
                frame = await subscriber.next_frame()
                if frame is None:
                    return
                yield frame
        finally:
            self.disconnect(subscriber)

    def disconnect(self, subscriber: Subscriber) -> bool:
        """Tear a subscriber down. Returns True only on the first call.

        Synchronous, since it runs from finally blocks of cancelled
        tasks and from inside the publish loop.
        """
        removed = self.registry.unregister(subscriber)
        if subscriber.heartbeat is not None:
            subscriber.heartbeat.stop()
        subscriber.close()
        if removed:
            logger.info(
                "hub.disconnected",
                subscriber_id=subscriber.id,
                client=subscriber.client,
                connected_seconds=round(subscriber.connected_seconds, 3),
                clients=self.client_count,
            )
        return removed

    async def close(self) -> None:
        """Drop every subscriber and refuse new ones. Used on shutdown."""
        self.closed = True
        subscribers = self.registry.snapshot()
        for subscriber in subscribers:
            self.disconnect(subscriber)
        await asyncio.gather(
            *(s.heartbeat.wait_stopped() for s in subscribers if s.heartbeat is not None)
        )
        logger.info("hub.closed", dropped=len(subscribers))

    # ─── Delivery ────────────────────────────────────────────

    def deliver(self, subscriber: Subscriber, frame: bytes) -> bool:
        """Write one frame to one subscriber. Failure means disconnect.

        Shared by publish() and the heartbeat so both fail the same way.
        """
        try:
            subscriber.write(frame)
        except SubscriberWriteError as e:
            logger.info(
                "hub.write_failed",
                subscriber_id=subscriber.id,
                reason=e.reason,
            )
            self.disconnect(subscriber)
            return False
        return True

    def publish(self, payload: Any) -> int:
        """Fan a payload out to every connected subscriber.

        Returns the number of subscribers attempted (the snapshot size),
        not the number that succeeded. Never raises for subscriber errors
        and never waits on a subscriber.
        """
        frame = encode_message(normalize(payload))
        subscribers = self.registry.snapshot()
        delivered = 0
        for subscriber in subscribers:
            if self.deliver(subscriber, frame):
                delivered += 1
        logger.debug(
            "hub.published",
            attempted=len(subscribers),
            delivered=delivered,
            bytes=len(frame),
        )
        return len(subscribers)
