"""Fixed-window rate limiting for the booking write endpoints.

Applies to POST requests under /api/v1/bookings (create, cancel, return,
sync). Each client gets RATE_LIMIT_PER_MINUTE requests per 60s window:

    count = INCR ratelimit:{client}:{window}
    if count == 1: EXPIRE key 60
    if count > limit: 429 + Retry-After

The client is the socket peer. X-Forwarded-For is only read when the peer is
one of TRUSTED_PROXIES; the client is then the right-most hop that is not a
trusted proxy, since everything left of it is whatever the caller sent.
If Redis is unreachable the request is let through.
"""

import logging
import time
from collections.abc import Awaitable, Callable, Iterable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from config.settings import settings
from src.br_common.errors import RateLimitError
from src.br_common.redis_client import get_redis
from src.br_common.response import error_response

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60
_LIMITED_PREFIX = "/api/v1/bookings"


def _client_key(request: Request, trusted_proxies: frozenset[str]) -> str:
    peer = request.client.host if request.client else "unknown"
    if peer not in trusted_proxies:
        return peer
    forwarded = request.headers.get("x-forwarded-for", "")
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted_proxies:
            return hop
    return peer


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        limit_per_minute: int | None = None,
        redis_getter: Callable[[], Awaitable[aioredis.Redis]] | None = None,
        trusted_proxies: Iterable[str] | None = None,
    ) -> None:
        super().__init__(app)
        self._trusted_proxies = frozenset(
            trusted_proxies if trusted_proxies is not None else settings.TRUSTED_PROXIES
        )
        self._limit = (
            limit_per_minute if limit_per_minute is not None else settings.RATE_LIMIT_PER_MINUTE
        )
        self._redis_getter = redis_getter

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method != "POST" or not request.url.path.startswith(_LIMITED_PREFIX):
            return await call_next(request)

        now = int(time.time())
        window = now // _WINDOW_SECONDS
        client = _client_key(request, self._trusted_proxies)
        key = f"ratelimit:{client}:bookings:{window}"
        try:
            redis = await (self._redis_getter or get_redis)()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, allowing request: %s", exc)
            return await call_next(request)

        if count > self._limit:
            retry_after = _WINDOW_SECONDS - (now % _WINDOW_SECONDS)
            logger.warning(
                "Rate limit exceeded for %s on %s (%d > %d)",
                client,
                request.url.path,
                count,
                self._limit,
            )
            err = RateLimitError()
            resp = error_response(err.code, err.message, request)
            return JSONResponse(
                status_code=err.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)
