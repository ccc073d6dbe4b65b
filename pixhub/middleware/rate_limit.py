from __future__ import annotations

import logging
import time
from typing import Awaitable, Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from pixhub.core.errors import error_response

logger = logging.getLogger(__name__)

_EXEMPT_PREFIXES = ("/health", "/metrics")


class RedisRateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed one-minute window per client, counted in Redis.

    Disabled when the app has no Redis client or the limit is not positive.
    Redis failures let the request through.
    """

    def __init__(self, app, limit_per_minute: int = 0, static_prefix: str | None = None):
        super().__init__(app)
        self.limit_per_minute = int(limit_per_minute or 0)
        self.exempt_prefixes = _EXEMPT_PREFIXES + ((static_prefix,) if static_prefix else ())

    @staticmethod
    def _resolve_subject(request: Request) -> str:
        forwarded = (request.headers.get("x-forwarded-for") or "").strip()
        if forwarded:
            return f"ip:{forwarded.split(',')[0].strip()}"

        real_ip = (request.headers.get("x-real-ip") or "").strip()
        if real_ip:
            return f"ip:{real_ip}"

        ip = request.client.host if request.client else "unknown"
        return f"ip:{ip}"

    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable]):
        redis_client = getattr(request.app.state, "redis", None)
        if self.limit_per_minute <= 0 or redis_client is None:
            return await call_next(request)
        if request.url.path.startswith(self.exempt_prefixes):
            return await call_next(request)

        subject = self._resolve_subject(request)
        minute_bucket = int(time.time() // 60)
        key = f"rl:{subject}:{minute_bucket}"

        try:
            count = await redis_client.incr(key)
            if count == 1:
                await redis_client.expire(key, 65)
        except Exception:
            logger.warning("Rate limit check skipped, Redis unavailable", exc_info=True)
            return await call_next(request)

        if count > self.limit_per_minute:
            response = error_response(429, "rate_limited", "Rate limit exceeded")
            response.headers["Retry-After"] = "60"
            return response
        return await call_next(request)
