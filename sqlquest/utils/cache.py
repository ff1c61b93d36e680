"""
Redis cache utility for challenge listings
"""
import redis
import json
import logging
from typing import Optional, Any
from sqlquest.config import settings

logger = logging.getLogger(__name__)


class CacheService:
    """Redis-based caching service; every operation degrades to a no-op without Redis"""

    def __init__(self, redis_url: Optional[str] = None):
        try:
            self.redis_client = redis.from_url(
                redis_url or settings.REDIS_URL,
                decode_responses=True,
                socket_connect_timeout=2
            )
            # Test connection
            self.redis_client.ping()
            logger.info("Redis connection established")
        except Exception as e:
            logger.warning(f"Redis connection failed: {str(e)}. Caching disabled.")
            self.redis_client = None

    def challenge_list_key(
        self,
        difficulty: Optional[str],
        category: Optional[str],
        page: int,
        limit: int
    ) -> str:
        """Deterministic cache key for a challenge list query"""
        return f"challenges:list:{difficulty or '*'}:{category or '*'}:{page}:{limit}"

    def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache

        Args:
            key: Cache key

        Returns:
            Cached value or None
        """
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                logger.debug(f"Cache hit: {key}")
                return json.loads(value)
            logger.debug(f"Cache miss: {key}")
            return None
        except Exception as e:
            logger.error(f"Cache get error: {str(e)}")
            return None

    def set(self, key: str, value: Any, ttl: int = None) -> bool:
        """
        Set value in cache

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds (default from settings)

        Returns:
            Success status
        """
        if not self.redis_client:
            return False

        try:
            ttl = ttl or settings.DEFAULT_CACHE_TTL
            serialized = json.dumps(value, default=str)
            self.redis_client.setex(key, ttl, serialized)
            logger.debug(f"Cache set: {key} (TTL: {ttl}s)")
            return True
        except Exception as e:
            logger.error(f"Cache set error: {str(e)}")
            return False

    def clear_challenge_cache(self) -> bool:
        """Drop every cached challenge listing"""
        if not self.redis_client:
            return False

        try:
            keys = self.redis_client.keys("challenges:list:*")
            if keys:
                self.redis_client.delete(*keys)
                logger.info(f"Cleared {len(keys)} cached challenge listings")
            return True
        except Exception as e:
            logger.error(f"Cache clear error: {str(e)}")
            return False


# Global instance
cache_service = CacheService()
