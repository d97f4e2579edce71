"""Rate limiting middleware for public write and admin endpoints."""
import logging
import time
from collections import defaultdict
from typing import Dict, Tuple

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    Simple in-memory rate limiting middleware, keyed by client IP and endpoint.

    Limits are per process; multiple workers each keep their own counters.
    """

    def __init__(self, app):
        super().__init__(app)
        # Store: {(client_id, endpoint_id): [timestamp, ...]}
        self.requests: Dict[Tuple[str, str], list] = defaultdict(list)

        # Rate limits: {endpoint_pattern: (max_requests, window_seconds)}
        self.limits = {
            # Server-side tracking forwards to a third party: keep it from being used as a relay
            "/api/track": (60, 60),
            # Admin mutations and config tests
            "/api/apps": (120, 60),
        }

    def _client_id(self, request: Request) -> str:
        # Socket peer only: X-Forwarded-For is client-controlled
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next):
        """Check rate limit before processing request."""
        path = request.url.path

        limit_config = None
        endpoint_id = None
        for pattern, config in self.limits.items():
            # Exact match or prefix match for sub-paths (e.g. /api/apps/preview)
            if path == pattern or path.startswith(pattern + "/"):
                limit_config = config
                endpoint_id = pattern
                break

        # Reads of the apps API are served to every visitor page; only limit writes
        if endpoint_id == "/api/apps" and request.method in ("GET", "HEAD", "OPTIONS"):
            limit_config = None

        if limit_config and endpoint_id:
            max_requests, window_seconds = limit_config
            client_id = self._client_id(request)
            key = (client_id, endpoint_id)

            # Clean old entries
            now = time.time()
            self.requests[key] = [
                ts for ts in self.requests[key]
                if now - ts < window_seconds
            ]

            if len(self.requests[key]) >= max_requests:
                logger.warning(
                    "Rate limit exceeded for %s on %s (%d requests in %d seconds)",
                    client_id, endpoint_id, len(self.requests[key]), window_seconds
                )
                return JSONResponse(
                    status_code=429,
                    content={
                        "error": f"Rate limit exceeded. Maximum {max_requests} requests per {window_seconds} seconds.",
                        "code": "TOO_MANY_REQUESTS",
                    },
                )

            self.requests[key].append(now)

        response = await call_next(request)
        return response
