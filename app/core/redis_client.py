"""Optional Redis cache for doctor and blog reads.

Caching is switched off entirely when ``REDIS_HOST`` is unset, in which case
``get_redis_client`` returns None and services run uncached.
"""

import json
from datetime import date, datetime
from typing import Any, cast

import redis
from structlog import get_logger

from app.config import settings

logger = get_logger(__name__)

_redis_client: redis.Redis | None = None


def get_redis_client() -> redis.Redis | None:
    """Return the shared Redis client, or None when caching is disabled."""
    global _redis_client

    if not settings.redis_host:
        return None

    if _redis_client is None:
        _redis_client = redis.Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            username=settings.redis_username,
            password=settings.redis_password or None,
            decode_responses=settings.redis_decode_responses,
            socket_connect_timeout=5,
            socket_timeout=5,
            health_check_interval=30,
        )

    return _redis_client


async def check_redis_connection() -> bool:
    """Ping Redis; False when disabled or unreachable."""
    client = get_redis_client()
    if client is None:
        return False
    try:
        return bool(client.ping())
    except redis.RedisError:
        return False


def close_redis_connection() -> None:
    """Close and forget the shared client."""
    global _redis_client

    if _redis_client is not None:
        _redis_client.close()
        _redis_client = None


def _json_default(value: Any) -> str:
    # Rows carry datetimes and UUIDs
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value)


class CacheManager:
    """JSON cache over Redis.

    A Redis failure never breaks a request: reads degrade to a miss and
    writes or deletes report failure through their return value.
    """

    def __init__(self, redis_client: redis.Redis):
        """Wrap an existing Redis client."""
        self.redis = redis_client

    def get_json(self, key: str) -> Any | None:
        """Return the decoded value stored at ``key``, or None on a miss."""
        try:
            raw = cast(str | None, self.redis.get(key))
        except Exception as e:
            logger.debug("cache_read_failed", key=key, error=str(e))
            return None

        if not raw:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.debug("cache_entry_corrupt", key=key)
            return None

    def set_json(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """
        Store ``value`` as JSON.

        Args:
            key: Cache key, e.g. ``doctor:<id>`` or ``blog:list``
            value: Row dict or list of row dicts
            ttl: Expiry in seconds; no expiry when omitted

        Returns:
            True if the value was written
        """
        try:
            payload = json.dumps(value, default=_json_default)
            if ttl:
                self.redis.setex(key, ttl, payload)
            else:
                self.redis.set(key, payload)
        except Exception as e:
            logger.debug("cache_write_failed", key=key, error=str(e))
            return False
        return True

    def delete(self, key: str) -> bool:
        """Drop a single key."""
        try:
            self.redis.delete(key)
        except Exception as e:
            logger.debug("cache_delete_failed", key=key, error=str(e))
            return False
        return True

    def delete_pattern(self, pattern: str) -> int:
        """Drop every key matching a glob such as ``doctor:list:*``; returns the count."""
        try:
            keys = list(self.redis.scan_iter(match=pattern))
            if not keys:
                return 0
            return cast(int, self.redis.delete(*keys))
        except Exception as e:
            logger.debug("cache_delete_failed", pattern=pattern, error=str(e))
            return 0
