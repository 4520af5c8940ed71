"""Publish endpoint — one event in, fanned out to every subscriber.

Learn: POST /ingest is permissive. JSON objects pass through as-is; raw
text, form posts, arrays and broken JSON are wrapped as {"text": ...}.
The only rejection is an oversized body (413). The response always
reports success with the number of subscribers the event was attempted
to, even if some of those writes failed.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request

from livefeed.config import settings
from livefeed.realtime.codec import parse_body
from livefeed.realtime.dependencies import get_hub
from livefeed.realtime.hub import BroadcastHub
from livefeed.schemas.ingest import IngestResponse

logger = structlog.get_logger()
router = APIRouter()


async def _read_body(request: Request, limit: int) -> bytes:
    """Read the request body, refusing anything over `limit` bytes."""
    declared = request.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > limit:
        raise HTTPException(status_code=413, detail="Request body too large")

    chunks = []
    size = 0
    async for chunk in request.stream():
        size += len(chunk)
        if size > limit:
            raise HTTPException(status_code=413, detail="Request body too large")
        chunks.append(chunk)
    return b"".join(chunks)


@router.post("/ingest", response_model=IngestResponse)
async def ingest(request: Request, hub: BroadcastHub = Depends(get_hub)):
    """Broadcast one payload to all connected subscribers."""
    body = await _read_body(request, settings.max_body_bytes)
    payload = parse_body(body, request.headers.get("content-type", ""))
    delivered_to = hub.publish(payload)
    logger.info("ingest.published", delivered_to=delivered_to, size=len(body))
    return IngestResponse(delivered_to=delivered_to)
