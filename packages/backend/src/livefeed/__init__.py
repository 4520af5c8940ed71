"""Live Feed — in-memory Server-Sent Events broadcast hub.

A producer POSTs event payloads to /ingest and every client connected to
/events receives them in real time. Heartbeat pings keep idle connections
open through proxies.
"""

__version__ = "0.1.0"
