"""Subscriber registry — the hub's set of live connections.

Learn: The registry is the only shared mutable state in the hub. Broadcasts
iterate a snapshot (a copy taken under the lock), so a subscriber removed
mid-broadcast can't break the loop and can't be visited twice.

The lock is a plain threading.Lock: no critical section awaits anything,
so it never blocks the event loop for longer than a set operation.
"""

import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from livefeed.realtime.subscriber import Subscriber


class SubscriberRegistry:
    """Thread-safe set of subscribers with copy-on-read iteration."""

    def __init__(self) -> None:
        self._subscribers: set["Subscriber"] = set()
        self._lock = threading.Lock()

    def register(self, subscriber: "Subscriber") -> None:
        with self._lock:
            self._subscribers.add(subscriber)

    def unregister(self, subscriber: "Subscriber") -> bool:
        """Remove a subscriber. Returns True only if it was present."""
        with self._lock:
            if subscriber not in self._subscribers:
                return False
            self._subscribers.remove(subscriber)
            return True

    def snapshot(self) -> list["Subscriber"]:
        with self._lock:
            return list(self._subscribers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def __contains__(self, subscriber: object) -> bool:
        with self._lock:
            return subscriber in self._subscribers
