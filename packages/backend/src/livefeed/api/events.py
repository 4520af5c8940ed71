"""Subscribe endpoint — the Server-Sent Events stream.

Learn: GET /events never "finishes". The handler registers a subscriber
and returns a StreamingResponse wrapping hub.stream(); Starlette keeps
iterating it until the client disconnects, at which point the generator
is cancelled and the hub tears the subscriber down.

Headers:
- Cache-Control: no-transform stops proxies from compressing/buffering
- X-Accel-Buffering: no disables nginx response buffering
"""

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from livefeed.realtime.dependencies import get_hub
from livefeed.realtime.errors import HubClosedError
from livefeed.realtime.hub import BroadcastHub

router = APIRouter()

SSE_HEADERS = {
    "Cache-Control": "no-cache, no-transform",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


@router.get("/events")
async def stream_events(request: Request, hub: BroadcastHub = Depends(get_hub)):
    """Open a long-lived event stream for this client."""
    client = f"{request.client.host}:{request.client.port}" if request.client else None
    try:
        subscriber = hub.subscribe(client=client)
    except HubClosedError:
        raise HTTPException(status_code=503, detail="Server is shutting down")

    async def release():
        # Runs after the response ends, even if the stream never started
        hub.disconnect(subscriber)

    return StreamingResponse(
        hub.stream(subscriber),
        media_type="text/event-stream",
        headers=SSE_HEADERS,
        background=BackgroundTask(release),
    )
