"""HTTP endpoint tests — /health, /ingest and middleware.

Learn: Subscribers here are attached straight to the test hub (the
`hub` fixture is the same object the app serves), so these tests check
the request/response side without opening a real stream. Streaming is
covered in test_events_stream.py.
"""

import json

import pytest
from httpx import ASGITransport, AsyncClient

from livefeed.config import settings
from livefeed.realtime.codec import decode_frame


async def _payloads(subscriber):
    out = []
    while subscriber.pending:
        _, data = decode_frame(await subscriber.next_frame())
        out.append(json.loads(data))
    return out


# ─── /health ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_health_reports_zero_clients(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "clients": 0}


@pytest.mark.asyncio
async def test_health_counts_subscribers(client, hub):
    a = hub.subscribe()
    hub.subscribe()
    assert (await client.get("/health")).json()["clients"] == 2

    hub.disconnect(a)
    assert (await client.get("/health")).json()["clients"] == 1


# ─── /ingest ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_ingest_without_subscribers(client):
    resp = await client.post("/ingest", json={"text": "hello"})
    assert resp.status_code == 200
    assert resp.json() == {"ok": True, "deliveredTo": 0}


@pytest.mark.asyncio
async def test_ingest_json_object_delivered_unchanged(client, hub):
    subs = [hub.subscribe() for _ in range(3)]
    body = {"text": "hello", "source": "ci", "build": 42}

    resp = await client.post("/ingest", json=body)
    assert resp.json() == {"ok": True, "deliveredTo": 3}

    for sub in subs:
        assert await _payloads(sub) == [body]


@pytest.mark.asyncio
async def test_ingest_plain_text_is_wrapped(client, hub):
    sub = hub.subscribe()
    resp = await client.post(
        "/ingest", content="raw string", headers={"Content-Type": "text/plain"}
    )
    assert resp.json()["deliveredTo"] == 1
    assert await _payloads(sub) == [{"text": "raw string"}]


@pytest.mark.asyncio
async def test_ingest_form_post(client, hub):
    sub = hub.subscribe()
    await client.post("/ingest", data={"text": "from a form", "who": "make"})
    assert await _payloads(sub) == [{"text": "from a form", "who": "make"}]


@pytest.mark.asyncio
async def test_ingest_malformed_json_is_not_rejected(client, hub):
    sub = hub.subscribe()
    resp = await client.post(
        "/ingest", content="{oops", headers={"Content-Type": "application/json"}
    )
    assert resp.status_code == 200
    assert await _payloads(sub) == [{"text": "{oops"}]


@pytest.mark.asyncio
async def test_ingest_empty_body(client, hub):
    sub = hub.subscribe()
    resp = await client.post("/ingest")
    assert resp.status_code == 200
    assert await _payloads(sub) == [{"text": ""}]


@pytest.mark.asyncio
async def test_ingest_json_array_is_wrapped(client, hub):
    sub = hub.subscribe()
    await client.post("/ingest", json=["a", "b"])
    assert await _payloads(sub) == [{"text": '["a","b"]'}]


@pytest.mark.asyncio
async def test_ingest_rejects_oversized_body(client, hub, monkeypatch):
    monkeypatch.setattr(settings, "max_body_bytes", 16)
    sub = hub.subscribe()

    resp = await client.post("/ingest", json={"text": "x" * 100})
    assert resp.status_code == 413
    assert sub.pending == 0


@pytest.mark.asyncio
async def test_ingest_counts_attempts_not_successes(client, hub):
    from livefeed.realtime.errors import SubscriberWriteError

    ok, broken = hub.subscribe(), hub.subscribe()

    def fail(frame):
        raise SubscriberWriteError(broken.id, "gone")

    broken.write = fail

    resp = await client.post("/ingest", json={"text": "hi"})
    assert resp.json() == {"ok": True, "deliveredTo": 2}
    assert hub.client_count == 1
    assert await _payloads(ok) == [{"text": "hi"}]


# ─── Middleware ──────────────────────────────────────────


@pytest.mark.asyncio
async def test_request_id_generated(client):
    r1 = await client.get("/health")
    r2 = await client.get("/health")
    assert "X-Request-ID" in r1.headers
    assert r1.headers["X-Request-ID"] != r2.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_request_id_propagated(client):
    r = await client.get("/health", headers={"X-Request-ID": "trace-12345"})
    assert r.headers["X-Request-ID"] == "trace-12345"


@pytest.mark.asyncio
async def test_cors_allows_any_origin(client):
    r = await client.get("/health", headers={"Origin": "https://overlay.example"})
    assert r.headers["access-control-allow-origin"] == "*"


@pytest.mark.asyncio
async def test_cors_preflight_for_ingest(client):
    r = await client.options(
        "/ingest",
        headers={
            "Origin": "https://hooks.example",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type",
        },
    )
    assert r.status_code == 200
    assert "POST" in r.headers["access-control-allow-methods"]


@pytest.mark.asyncio
async def test_ingest_rejects_oversized_chunked_body(client, hub, monkeypatch):
    monkeypatch.setattr(settings, "max_body_bytes", 16)
    sub = hub.subscribe()

    async def chunks():
        for _ in range(4):
            yield b"0123456789"

    # No Content-Length: the limit is enforced while streaming the body
    resp = await client.post(
        "/ingest", content=chunks(), headers={"Content-Type": "text/plain"}
    )
    assert resp.status_code == 413
    assert sub.pending == 0


@pytest.mark.asyncio
async def test_chunked_body_within_limit_is_published(client, hub):
    sub = hub.subscribe()

    async def chunks():
        yield b"hello "
        yield b"world"

    resp = await client.post(
        "/ingest", content=chunks(), headers={"Content-Type": "text/plain"}
    )
    assert resp.json()["deliveredTo"] == 1
    assert await _payloads(sub) == [{"text": "hello world"}]


@pytest.mark.asyncio
async def test_security_headers_on_health(client):
    r = await client.get("/health")
    assert r.headers["X-Content-Type-Options"] == "nosniff"
    assert r.headers["Referrer-Policy"] == "strict-origin-when-cross-origin"
    assert r.headers["Content-Security-Policy"] == "frame-ancestors *"
    # The feed is meant to be embedded, so framing is never denied outright
    assert "X-Frame-Options" not in r.headers


@pytest.mark.asyncio
async def test_no_hsts_on_http(client):
    r = await client.get("/health")
    assert "Strict-Transport-Security" not in r.headers


@pytest.mark.asyncio
async def test_hsts_on_https(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="https://test") as ac:
        r = await ac.get("/health")
    assert r.headers["Strict-Transport-Security"] == "max-age=31536000; includeSubDomains"


@pytest.mark.asyncio
async def test_frame_ancestors_configurable(hub, monkeypatch):
    from livefeed.main import create_app

    monkeypatch.setattr(settings, "frame_ancestors", "'self' https://obs.example")
    app = create_app(hub=hub)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        r = await ac.get("/health")
    assert r.headers["Content-Security-Policy"] == "frame-ancestors 'self' https://obs.example"
