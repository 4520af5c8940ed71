"""FastAPI dependency for the broadcast hub.

Learn: The hub is created once per app in main.create_app() and kept on
app.state. Routes ask for it with Depends(get_hub) instead of importing
a global, so tests can swap in their own hub via dependency_overrides.
"""

from fastapi import Request

from livefeed.realtime.hub import BroadcastHub


def get_hub(request: Request) -> BroadcastHub:
    """FastAPI dependency — the app's BroadcastHub."""
    return request.app.state.hub
