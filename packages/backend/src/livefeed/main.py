"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance with its own BroadcastHub. Lifespan manages startup/shutdown:
on shutdown the hub drops every subscriber so open streams end cleanly
instead of being cut mid-frame.

Tests call create_app(hub=...) to get an app around a hub they control.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from livefeed import __version__
from livefeed.api import api_router
from livefeed.config import settings
from livefeed.realtime.hub import BroadcastHub

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle."""
    hub: BroadcastHub = app.state.hub
    logger.info(
        "livefeed.starting",
        version=__version__,
        environment=settings.environment,
        port=settings.port,
        heartbeat_interval=hub.heartbeat_interval,
    )

    yield

    logger.info("livefeed.shutdown", clients=hub.client_count)
    await hub.close()


def create_app(hub: Optional[BroadcastHub] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    app = FastAPI(
        title="Live Feed",
        description="In-memory Server-Sent Events broadcast hub",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.hub = hub or BroadcastHub(
        heartbeat_interval=settings.heartbeat_interval,
        queue_size=settings.subscriber_queue_size,
    )

    # ── Middleware stack ──────────────────────────────────────
    # Starlette middleware executes in reverse order of registration.
    # Request flow: RequestId → Security → CORS → handler

    from livefeed.middleware.request_id import RequestIdMiddleware
    from livefeed.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(
        SecurityHeadersMiddleware,
        frame_ancestors=settings.frame_ancestors,
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: livefeed.main:app)
app = create_app()
