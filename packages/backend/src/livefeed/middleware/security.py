"""Security headers middleware.

Learn: Adds standard security headers to every response:
- X-Content-Type-Options: prevents MIME-type sniffing
- Referrer-Policy: limits referrer info leakage
- Content-Security-Policy frame-ancestors: who may embed the feed
- Strict-Transport-Security: forces HTTPS (only on HTTPS connections)

There is no X-Frame-Options: DENY. The feed is built to be embedded
(dashboards, stream overlays), so framing is governed by frame-ancestors,
which defaults to "*" and can be narrowed via LIVEFEED_FRAME_ANCESTORS.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, frame_ancestors: str = "*"):
        super().__init__(app)
        self.frame_ancestors = frame_ancestors

    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Content-Security-Policy"] = (
            f"frame-ancestors {self.frame_ancestors}"
        )
        if request.url.scheme == "https":
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )
        return response
