from typing import Optional
import redis.asyncio as redis
from goryl.config.settings import config_settings


def make_redis_client(url: Optional[str]) -> Optional[redis.Redis]:
    # caching is skipped entirely when no redis is configured
    if not url:
        return None
    return redis.Redis.from_url(url, decode_responses=False)


redis_client = make_redis_client(config_settings.REDIS_URL)

REDIS_LOCK_TIMEOUT = 5   # seconds
