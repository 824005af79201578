# ============================================================================
# FILE: songguessr/core/cache.py
# ============================================================================
import redis
import json
from typing import Optional, Any
from songguessr.config import settings
import logging

logger = logging.getLogger(__name__)

# Cache keys for catalog reads. Every write to the entity deletes its key.
PLAYLISTS_ACTIVE_KEY = "playlists:active"


def playlist_key(playlist_id: int) -> str:
    return f"playlist:{playlist_id}"


def song_key(song_id: int) -> str:
    return f"song:{song_id}"


class RedisCache:
    """Redis cache helper class"""

    def __init__(self, url: str = None, enabled: bool = None):
        self.redis_client = None
        enabled = settings.CACHE_ENABLED if enabled is None else enabled
        if not enabled:
            logger.info("Caching disabled by configuration")
            return
        try:
            self.redis_client = redis.from_url(url or settings.REDIS_URL, decode_responses=True)
            self.redis_client.ping()
            logger.info("Redis connection established")
        except redis.RedisError as e:
            logger.warning(f"Redis connection failed: {e}. Caching disabled.")
            self.redis_client = None

    @property
    def enabled(self) -> bool:
        return self.redis_client is not None

    def set_cache(self, key: str, value: Any, expire: int = None) -> bool:
        """Set a cache value with optional expiration"""
        if not self.redis_client:
            return False

        try:
            serialized = json.dumps(value)
            if expire:
                self.redis_client.setex(key, expire, serialized)
            else:
                self.redis_client.set(key, serialized)
            return True
        except (redis.RedisError, TypeError) as e:
            logger.error(f"Cache set error: {e}")
            return False

    def get_cache(self, key: str) -> Optional[Any]:
        """Get a cache value"""
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            if value:
                return json.loads(value)
            return None
        except (redis.RedisError, ValueError) as e:
            logger.error(f"Cache get error: {e}")
            return None

    def delete_cache(self, *keys: str) -> bool:
        """Delete one or more cache values"""
        if not self.redis_client or not keys:
            return False

        try:
            self.redis_client.delete(*keys)
            return True
        except redis.RedisError as e:
            logger.error(f"Cache delete error: {e}")
            return False

# Singleton instance
cache = RedisCache()
