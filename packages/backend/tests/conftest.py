"""Test fixtures — isolated hubs, apps and stream connections per test.

Learn: Every test gets its own BroadcastHub wrapped in its own app via
create_app(hub=...), so no subscriber ever leaks between tests.

Request/response endpoints go through httpx's ASGITransport. That
transport buffers the whole response body before returning, which never
happens for /events, so streams are driven by SSEConnection instead: a
tiny ASGI client that hands each body chunk over as it's sent and can
simulate the browser going away.
"""

import asyncio

import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from livefeed.main import create_app
from livefeed.realtime.codec import decode_frame
from livefeed.realtime.hub import BroadcastHub

# Long enough that no ping shows up unless a test asks for one
QUIET_HEARTBEAT = 60.0


class StreamClosed(Exception):
    """The server finished the response."""


class SSEConnection:
    """Minimal ASGI client for one long-lived GET request."""

    def __init__(self, app, path: str = "/events", client=("127.0.0.1", 50000)):
        self.app = app
        self.path = path
        self.client = client
        self.status = None
        self.headers: dict[str, str] = {}
        self.finished = False
        self._messages: asyncio.Queue = asyncio.Queue()
        self._disconnect = asyncio.Event()
        self._request_sent = False
        self._buffer = b""
        self._task = None

    async def _receive(self):
        if not self._request_sent:
            self._request_sent = True
            return {"type": "http.request", "body": b"", "more_body": False}
        await self._disconnect.wait()
        return {"type": "http.disconnect"}

    async def _send(self, message):
        await self._messages.put(message)

    async def open(self, timeout: float = 2.0) -> "SSEConnection":
        scope = {
            "type": "http",
            "asgi": {"version": "3.0"},
            "http_version": "1.1",
            "method": "GET",
            "scheme": "http",
            "path": self.path,
            "raw_path": self.path.encode(),
            "root_path": "",
            "query_string": b"",
            "headers": [(b"host", b"test"), (b"accept", b"text/event-stream")],
            "client": self.client,
            "server": ("test", 80),
        }
        self._task = asyncio.create_task(self.app(scope, self._receive, self._send))
        start = await asyncio.wait_for(self._messages.get(), timeout)
        assert start["type"] == "http.response.start"
        self.status = start["status"]
        self.headers = {k.decode().lower(): v.decode() for k, v in start["headers"]}
        return self

    async def next_frame(self, timeout: float = 2.0) -> bytes:
        """Return the next complete framed unit, including comments."""
        while b"\n\n" not in self._buffer:
            if self.finished:
                raise StreamClosed()
            message = await asyncio.wait_for(self._messages.get(), timeout)
            if message["type"] != "http.response.body":
                continue
            self._buffer += message.get("body", b"")
            if not message.get("more_body", False):
                self.finished = True
        frame, self._buffer = self._buffer.split(b"\n\n", 1)
        return frame + b"\n\n"

    async def next_event(self, timeout: float = 2.0) -> tuple[str, str]:
        """Return the next (event_type, data), skipping comment frames."""
        while True:
            frame = await self.next_frame(timeout)
            if frame.startswith(b":"):
                continue
            return decode_frame(frame)

    async def close(self, timeout: float = 2.0) -> None:
        """Simulate the client dropping the connection."""
        self._disconnect.set()
        if self._task is not None:
            await asyncio.wait_for(self._task, timeout)

    async def wait_finished(self, timeout: float = 2.0) -> None:
        """Wait for the server to end the response on its own."""
        await asyncio.wait_for(self._task, timeout)


@pytest_asyncio.fixture()
async def hub():
    """A fresh hub with heartbeats effectively switched off."""
    hub = BroadcastHub(heartbeat_interval=QUIET_HEARTBEAT, queue_size=16)
    try:
        yield hub
    finally:
        await hub.close()


@pytest_asyncio.fixture()
async def app(hub):
    return create_app(hub=hub)


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client bound to the test app (no network)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def connect(app):
    """Factory fixture: `conn = await connect()` opens an /events stream.

    Every connection still open at teardown is closed.
    """
    connections: list[SSEConnection] = []

    async def _connect(**kwargs) -> SSEConnection:
        conn = SSEConnection(app, **kwargs)
        connections.append(conn)
        return await conn.open()

    yield _connect

    for conn in connections:
        if conn._task is not None and not conn._task.done():
            await conn.close()
