"""Live Feed CLI — run the hub, publish events, watch the stream.

Usage:
    livefeed serve                           # Run the server (uvicorn)
    livefeed publish "deploy finished"       # Broadcast a text event
    livefeed publish --json '{"text": "hi"}' # Broadcast a JSON object
    livefeed tail                            # Print events as they arrive
    livefeed tail --pings                    # ...including heartbeats
    livefeed health                          # Connected subscriber count
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys

import click
import httpx

from livefeed import __version__
from livefeed.realtime.codec import PING_EVENT, decode_frame

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3000"


def _api_url() -> str:
    return os.environ.get("LIVEFEED_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(timeout: httpx.Timeout | float = 10.0) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Live Feed server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=timeout)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(message: str):
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def format_message(data: str) -> str:
    """Render a message frame's data the way the feed page does.

    Shows the "text" field when there is one, otherwise the JSON itself.
    Data that isn't JSON is shown verbatim.
    """
    try:
        payload = json.loads(data)
    except ValueError:
        return data
    if isinstance(payload, dict) and isinstance(payload.get("text"), str):
        return payload["text"]
    return json.dumps(payload, separators=(",", ":"))


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="livefeed")
def main():
    """Live Feed — broadcast events to connected browsers over SSE."""


# ---------------------------------------------------------------------------
# livefeed serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", default=None, help="Bind address (default: LIVEFEED_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: PORT or 3000)")
@click.option("--reload", is_flag=True, help="Auto-reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the broadcast server."""
    import uvicorn

    from livefeed.config import settings

    uvicorn.run(
        "livefeed.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# livefeed publish
# ---------------------------------------------------------------------------


@main.command()
@click.argument("message")
@click.option("--json", "as_json", is_flag=True, help="Treat MESSAGE as a JSON document")
def publish(message: str, as_json: bool):
    """Broadcast MESSAGE to every connected subscriber."""
    if as_json:
        try:
            json.loads(message)
        except ValueError as e:
            raise click.BadParameter(f"not valid JSON ({e})", param_hint="MESSAGE")
    _run(_publish_impl(message, as_json))


async def _publish_impl(message: str, as_json: bool):
    content_type = "application/json" if as_json else "text/plain; charset=utf-8"
    async with _client() as c:
        try:
            r = await c.post(
                "/ingest",
                content=message.encode("utf-8"),
                headers={"Content-Type": content_type},
            )
            r.raise_for_status()
        except httpx.HTTPError as e:
            _fail(f"publish failed: {e}")
        count = r.json()["deliveredTo"]
    click.secho(f"Delivered to {count} subscriber(s)", fg="green")


# ---------------------------------------------------------------------------
# livefeed tail
# ---------------------------------------------------------------------------


@main.command()
@click.option("--pings", is_flag=True, help="Also print heartbeat pings")
@click.option("--raw", is_flag=True, help="Print message data unformatted")
def tail(pings: bool, raw: bool):
    """Stream events from the server until interrupted."""
    try:
        _run(_tail_impl(pings, raw))
    except KeyboardInterrupt:
        click.echo()


async def _tail_impl(pings: bool, raw: bool):
    timeout = httpx.Timeout(10.0, read=None)
    async with _client(timeout) as c:
        try:
            async with c.stream("GET", "/events") as r:
                r.raise_for_status()
                click.secho(f"Connected to {_api_url()}/events", dim=True, err=True)
                frame: list[str] = []
                async for line in r.aiter_lines():
                    if line:
                        frame.append(line)
                        continue
                    if not frame:
                        continue
                    event_type, data = decode_frame("\n".join(frame))
                    frame = []
                    if event_type == PING_EVENT:
                        if pings:
                            click.secho(f"[ping {data}]", dim=True)
                        continue
                    if not data:
                        continue
                    click.echo(data if raw else format_message(data))
        except httpx.HTTPError as e:
            _fail(f"stream failed: {e}")
    click.secho("[stream closed]", dim=True, err=True)


# ---------------------------------------------------------------------------
# livefeed health
# ---------------------------------------------------------------------------


@main.command()
def health():
    """Show server health and subscriber count."""
    _run(_health_impl())


async def _health_impl():
    async with _client() as c:
        try:
            r = await c.get("/health")
            r.raise_for_status()
        except httpx.HTTPError as e:
            _fail(f"health check failed: {e}")
        data = r.json()
    status = click.style("ok" if data.get("ok") else "down", fg="green" if data.get("ok") else "red")
    click.echo(f"Server:  {status}")
    click.echo(f"Clients: {data.get('clients', 0)}")
