"""Per-client sliding-window rate limiting for the API routes."""

from __future__ import annotations

import time
from collections import defaultdict, deque

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..constants import DEFAULT_RATE_LIMIT


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Limit requests under ``path_prefix`` per client IP within a sliding window.

    Requests over the limit get HTTP 429 with a Retry-After header and a JSON
    ``{error, message}`` body. Paths outside the prefix (static workspace files)
    and ``exempt_paths`` are never counted.

    Args:
        app: The ASGI application.
        requests_per_minute: Maximum requests per client in the window.
        path_prefix: Only paths starting with this prefix are limited.
        exempt_paths: Exact paths that are never limited.
    """

    def __init__(  # noqa: ANN001
        self,
        app,
        requests_per_minute: int = DEFAULT_RATE_LIMIT,
        path_prefix: str = "/api/",
        exempt_paths: tuple[str, ...] = ("/api/health",),
        window_seconds: float = 60.0,
    ):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.path_prefix = path_prefix
        self.exempt_paths = exempt_paths
        self.window_seconds = window_seconds
        self._hits: dict[str, deque[float]] = defaultdict(deque)

    @staticmethod
    def client_ip(request: Request) -> str:
        """Client address, taking the first X-Forwarded-For hop when proxied."""
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    def _limited(self, path: str) -> bool:
        return path.startswith(self.path_prefix) and path not in self.exempt_paths

    def _prune(self, ip: str, now: float) -> deque[float]:
        hits = self._hits[ip]
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        return hits

    async def dispatch(self, request: Request, call_next):  # noqa: ANN001, ANN201
        if not self._limited(request.url.path):
            return await call_next(request)

        ip = self.client_ip(request)
        now = time.monotonic()
        hits = self._prune(ip, now)

        if len(hits) >= self.requests_per_minute:
            retry_after = max(int(self.window_seconds - (now - hits[0])) + 1, 1)
            return JSONResponse(
                {
                    "error": "Rate limit exceeded",
                    "message": f"Too many requests, retry in {retry_after}s",
                },
                status_code=429,
                headers={"Retry-After": str(retry_after)},
            )

        hits.append(now)
        return await call_next(request)
