#!/usr/bin/env python3
"""
Live Feed Publisher Example.

Posts a few events in each accepted shape: a JSON object (delivered
as-is), plain text and a JSON array (both wrapped as {"text": ...}).
Run `python examples/subscriber.py` in another terminal first to see
them arrive.

Run with: python examples/publisher.py

Requires: pip install httpx
Server must be running: http://localhost:3000
"""

import time

import httpx

from _common import BASE, check_backend


def main():
    check_backend()
    client = httpx.Client(base_url=BASE, timeout=10)

    # ── Structured event ──────────────────────────────────────────
    print("\n1. JSON object (passes through unchanged)...")
    resp = client.post("/ingest", json={"text": "build #42 passed", "level": "info"})
    print(f"   {resp.json()}")

    # ── Plain text ────────────────────────────────────────────────
    print("\n2. Plain text (wrapped as {\"text\": ...})...")
    resp = client.post(
        "/ingest",
        content="deploying to production",
        headers={"Content-Type": "text/plain"},
    )
    print(f"   {resp.json()}")

    # ── Non-object JSON ───────────────────────────────────────────
    print("\n3. JSON array (wrapped as text)...")
    resp = client.post("/ingest", json=["a", "b", "c"])
    print(f"   {resp.json()}")

    # ── A short burst ─────────────────────────────────────────────
    print("\n4. Burst of 5 numbered events...")
    for i in range(1, 6):
        resp = client.post("/ingest", json={"text": f"tick {i}/5"})
        print(f"   tick {i}: delivered to {resp.json()['deliveredTo']}")
        time.sleep(0.5)

    client.close()
    print("\nDone.")


if __name__ == "__main__":
    main()
