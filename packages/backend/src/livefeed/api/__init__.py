"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Routes live at the root (no /api/v1 prefix) because existing
producers and EventSource clients address /ingest and /events directly.
There is no auth layer: any client may subscribe or publish.
"""

from fastapi import APIRouter

from livefeed.api.events import router as events_router
from livefeed.api.health import router as health_router
from livefeed.api.ingest import router as ingest_router

api_router = APIRouter()

api_router.include_router(health_router, tags=["health"])
api_router.include_router(events_router, tags=["events"])
api_router.include_router(ingest_router, tags=["ingest"])
