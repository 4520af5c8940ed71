"""Real-time infrastructure — in-process broadcast hub + SSE framing.

Learn: Events flow in one direction:
1. Producer → POST /ingest → BroadcastHub.publish (fan-out pass)
2. Subscriber queue → GET /events streaming response → browser EventSource

Everything lives in one process. A restart drops every subscriber; clients
reconnect on their own (EventSource retries automatically).
"""

from livefeed.realtime.hub import BroadcastHub
from livefeed.realtime.subscriber import Subscriber

__all__ = ["BroadcastHub", "Subscriber"]
