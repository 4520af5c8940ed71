"""
Shared helpers for Live Feed examples.

Handles the server health check so each example can focus on its
side of the stream (publishing or subscribing).
"""

import os
import sys

import httpx

BASE = os.environ.get("LIVEFEED_API_URL", "http://localhost:3000").rstrip("/")


def check_backend() -> dict:
    """Verify the server is reachable and return its health payload."""
    try:
        resp = httpx.get(f"{BASE}/health", timeout=5)
    except httpx.ConnectError:
        print(f"ERROR: Server not reachable at {BASE}")
        print("Start it with:  livefeed serve   (or: uvicorn livefeed.main:app --port 3000)")
        sys.exit(1)

    if resp.status_code != 200:
        print(f"ERROR: Health check returned {resp.status_code}")
        sys.exit(1)

    health = resp.json()
    print(f"Server {BASE}: ok, {health['clients']} subscriber(s) connected")
    return health
