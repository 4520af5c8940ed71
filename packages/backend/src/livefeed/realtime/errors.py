"""Hub exceptions.

Learn: Subscriber write failures never leave the hub. They are raised by
Subscriber.write() and caught by BroadcastHub.deliver(), which turns them
into an implicit disconnect. Only HubClosedError reaches the transport.
"""


class HubError(Exception):
    """Base class for broadcast hub errors."""


class SubscriberWriteError(HubError):
    """A frame could not be queued for a subscriber (closed or full)."""

    def __init__(self, subscriber_id: str, reason: str):
        self.subscriber_id = subscriber_id
        self.reason = reason
        super().__init__(f"Subscriber {subscriber_id}: {reason}")


class HubClosedError(HubError):
    """The hub is shutting down and no longer accepts subscribers."""
