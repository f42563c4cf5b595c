"""Redis cache for key lookups."""

import json
import logging
from typing import Optional

import redis.asyncio as redis

from .models import Link


class RedisCache:
    """Redis cache for link records keyed by short key.

    Only the immutable-per-version parts of a link are meaningful here; click
    counts in a cached record are stale by design and never read back.
    Cache errors are logged and treated as misses.
    """

    def __init__(
        self,
        redis_url: Optional[str] = None,
        ttl_seconds: int = 3600,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize Redis cache.

        Args:
            redis_url: Redis connection URL (e.g., redis://localhost:6379/0)
            ttl_seconds: Default TTL for cached items
            logger: Optional logger instance
        """
        self.redis_url = redis_url
        self.ttl_seconds = ttl_seconds
        self.logger = logger or logging.getLogger(__name__)
        self.enabled = redis_url is not None
        self.client: Optional[redis.Redis] = None

        if redis_url:
            self.logger.info(f"Redis cache enabled with TTL={ttl_seconds}s")

    async def connect(self) -> None:
        """Connect to Redis."""
        if not self.enabled:
            return

        try:
            self.client = redis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            self.logger.info("Connected to Redis")
        except Exception as e:
            self.logger.error(f"Failed to connect to Redis: {e}")
            self.enabled = False

    async def get_link(self, key: str) -> Optional[Link]:
        """Get a cached link, or None on miss or error."""
        if not self.enabled or not self.client:
            return None

        try:
            payload = await self.client.get(self.get_cache_key(key))
        except Exception as e:
            self.logger.error(f"Cache get error: {e}")
            return None

        if not payload:
            return None

        try:
            return Link.from_dict(json.loads(payload))
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning(f"Discarding malformed cache entry for {key}: {e}")
            await self.invalidate(key)
            return None

    async def set_link(self, link: Link, ttl: Optional[int] = None) -> bool:
        """Cache a link record.

        Args:
            link: The link to cache
            ttl: Optional TTL override (seconds)

        Returns:
            True if successful
        """
        if not self.enabled or not self.client:
            return False

        try:
            await self.client.setex(
                self.get_cache_key(link.key),
                ttl or self.ttl_seconds,
                json.dumps(link.to_dict()),
            )
            return True
        except Exception as e:
            self.logger.error(f"Cache set error: {e}")
            return False

    async def invalidate(self, key: str) -> bool:
        """Drop a cached link.

        Returns:
            True if an entry was deleted
        """
        if not self.enabled or not self.client:
            return False

        try:
            result = await self.client.delete(self.get_cache_key(key))
            return result > 0
        except Exception as e:
            self.logger.error(f"Cache delete error: {e}")
            return False

    async def ping(self) -> bool:
        """Return True if Redis answers (or caching is disabled)."""
        if not self.enabled or not self.client:
            return True
        try:
            await self.client.ping()
            return True
        except Exception as e:
            self.logger.error(f"Cache ping failed: {e}")
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self.client:
            await self.client.aclose()
            self.logger.info("Redis connection closed")

    @staticmethod
    def get_cache_key(key: str) -> str:
        """Build the Redis key for a short key."""
        return f"shortlink:link:{key}"
