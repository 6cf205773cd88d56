"""Fixed-window rate limiting per client IP, backed by Redis.

    count = INCR ratelimit:{ip}:{window}
    if count == 1: EXPIRE key 60
    if count > limit: 429 + Retry-After

The client IP is the first hop of X-Forwarded-For when present (reverse
proxy aware), otherwise the socket peer. /health is never limited.
Disabled unless RATE_LIMIT_ENABLED is set.
"""

import logging
import time

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from src.pd_common.errors import RateLimitError
from src.pd_common.redis_client import get_redis
from src.pd_common.response import error_response

logger = logging.getLogger("pd.ratelimit")

WINDOW_SECONDS = 60
_EXEMPT_PATHS = frozenset({"/health"})


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client is not None:
        return request.client.host
    return "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app: ASGIApp, limit_per_minute: int, enabled: bool = True) -> None:
        super().__init__(app)
        self._limit = limit_per_minute
        self._enabled = enabled

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._enabled or request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        window = int(time.time()) // WINDOW_SECONDS
        key = f"ratelimit:{client_ip(request)}:{window}"
        redis = await get_redis()
        count = await redis.incr(key)
        if count == 1:
            await redis.expire(key, WINDOW_SECONDS)

        if count > self._limit:
            logger.warning("Rate limit exceeded for %s (%d/%d)", key, count, self._limit)
            exc = RateLimitError()
            resp = error_response(exc.code, exc.message, exc.kind.value)
            request_id = getattr(request.state, "request_id", None)
            if request_id:
                resp.request_id = request_id
            retry_after = WINDOW_SECONDS - int(time.time()) % WINDOW_SECONDS
            return JSONResponse(
                status_code=exc.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
