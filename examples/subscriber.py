#!/usr/bin/env python3
"""
Live Feed Subscriber Example.

Opens the /events stream and prints every frame as it arrives,
heartbeat pings included. Press Ctrl+C to disconnect; the server's
health endpoint will report one client fewer afterwards.

Run with: python examples/subscriber.py

Requires: pip install httpx
Server must be running: http://localhost:3000
"""

import json

import httpx

from _common import BASE, check_backend


def main():
    check_backend()
    print("Awaiting events... (press Ctrl+C to exit)\n")

    timeout = httpx.Timeout(10.0, read=None)
    event_type = "message"
    try:
        with httpx.stream("GET", f"{BASE}/events", timeout=timeout) as resp:
            for line in resp.iter_lines():
                if line.startswith("event:"):
                    event_type = line.split(":", 1)[1].strip()
                elif line.startswith("data:"):
                    data = line.split(":", 1)[1].strip()
                    if event_type == "ping":
                        print(f"  · ping {data}")
                    else:
                        print(f"  ▸ {json.loads(data)}")
                elif not line:
                    event_type = "message"
    except KeyboardInterrupt:
        print("\nDisconnected.")


if __name__ == "__main__":
    main()
