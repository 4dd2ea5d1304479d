"""HTTP middleware for the workspace API server."""

from .ratelimit import RateLimitMiddleware
from .security import SecurityHeadersMiddleware

__all__ = [
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
]
