"""Security headers for API responses and served workspace files."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..constants import CHART_JS_CDN

API_CSP = "default-src 'none'; frame-ancestors 'none'"

# Generated demos and analysis reports run inline scripts and load Chart.js.
WORKSPACE_CSP = (
    "default-src 'self';"
    f" script-src 'self' 'unsafe-inline' {CHART_JS_CDN.rsplit('/npm/', 1)[0]};"
    " style-src 'self' 'unsafe-inline';"
    " img-src 'self' data: blob:;"
    " connect-src 'self';"
    " frame-ancestors 'self'"
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to every HTTP response.

    JSON API responses get a deny-all Content-Security-Policy and may not be
    framed. Files under ``static_prefix`` are interactive pages, so they may
    run inline scripts and be framed by the same origin.
    """

    def __init__(self, app, static_prefix: str = "/workspace"):  # noqa: ANN001
        super().__init__(app)
        self.static_prefix = static_prefix

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001, ANN201
        response = await call_next(request)
        is_static = request.url.path.startswith(self.static_prefix)

        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "SAMEORIGIN" if is_static else "DENY")
        response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
        response.headers.setdefault(
            "Permissions-Policy", "camera=(), microphone=(), geolocation=()"
        )
        response.headers.setdefault(
            "Content-Security-Policy", WORKSPACE_CSP if is_static else API_CSP
        )
        return response
