"""Health check endpoint.

Learn: Read-only. Reports that the server is up and how many subscribers
are currently connected to the hub.
"""

from fastapi import APIRouter, Depends

from livefeed.realtime.dependencies import get_hub
from livefeed.realtime.hub import BroadcastHub
from livefeed.schemas.ingest import HealthResponse

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check(hub: BroadcastHub = Depends(get_hub)):
    """Server status plus live subscriber count."""
    return HealthResponse(clients=hub.client_count)
