from __future__ import annotations

from redis.asyncio import Redis

from pixhub.core.config import Settings


def build_redis(settings: Settings) -> Redis | None:
    url = str(settings.redis_url or "").strip()
    if not url:
        return None
    return Redis.from_url(url, decode_responses=True)
