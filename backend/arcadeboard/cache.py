"""
Redis cache for leaderboard and player summary responses.

Cached values are JSON documents. Cache failures are logged and swallowed:
a request never fails because Redis is slow or down, it just reads the
database instead.
"""
import json
import logging
import redis
from typing import Optional, Any
from arcadeboard.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

LEADERBOARD_PREFIX = "arcadeboard:leaderboard:"
PLAYER_PREFIX = "arcadeboard:player:"


def leaderboard_key(game: Optional[str], limit: int) -> str:
    scope = f"game:{game}" if game else "global"
    return f"{LEADERBOARD_PREFIX}{scope}:{limit}"


def player_key(player_id: str) -> str:
    return f"{PLAYER_PREFIX}{player_id}"


class CacheManager:
    """
    Redis cache manager with connection pooling and graceful degradation.

    With caching disabled, or when Redis cannot be reached at startup,
    every operation is a miss or a no-op.
    """

    def __init__(self, url: str, enabled: bool = True):
        self.redis_client = None
        if not enabled:
            logger.info("Redis cache disabled by configuration")
            return
        try:
            self.redis_client = redis.from_url(
                url,
                decode_responses=True,
                max_connections=50,
                socket_connect_timeout=2,
                socket_timeout=2,
                retry_on_timeout=True
            )
            self.redis_client.ping()
            logger.info(f"Redis cache initialized: {url}")
        except (redis.RedisError, ValueError) as e:
            logger.warning(f"Redis unavailable, running without cache: {str(e)}")
            self.redis_client = None

    def get(self, key: str) -> Optional[Any]:
        """Return the decoded value for key, or None on a miss or any error."""
        if not self.redis_client:
            return None

        try:
            value = self.redis_client.get(key)
            return json.loads(value) if value else None
        except redis.RedisError as e:
            logger.warning(f"Cache get error for key '{key}': {str(e)}")
        except json.JSONDecodeError as e:
            logger.error(f"Cache deserialization error for key '{key}': {str(e)}")
        return None

    def set(self, key: str, value: Any, ttl: int) -> bool:
        if not self.redis_client:
            return False

        try:
            serialized = json.dumps(value, default=str)
            return bool(self.redis_client.setex(key, ttl, serialized))
        except redis.RedisError as e:
            logger.warning(f"Cache set error for key '{key}': {str(e)}")
        except (TypeError, ValueError) as e:
            logger.error(f"Cache serialization error for key '{key}': {str(e)}")
        return False

    def delete(self, *keys: str) -> int:
        if not self.redis_client or not keys:
            return 0

        try:
            return self.redis_client.delete(*keys)
        except redis.RedisError as e:
            logger.warning(f"Cache delete error: {str(e)}")
            return 0

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with prefix, walking the keyspace with SCAN."""
        if not self.redis_client:
            return 0

        try:
            keys = list(self.redis_client.scan_iter(match=f"{prefix}*", count=500))
            return self.redis_client.delete(*keys) if keys else 0
        except redis.RedisError as e:
            logger.warning(f"Cache delete_prefix error for '{prefix}': {str(e)}")
            return 0

    def invalidate_after_run(self, player_id: str) -> None:
        """
        Drop everything a new run can change: that player's summary and
        every cached leaderboard.
        """
        self.delete(player_key(player_id))
        deleted = self.delete_prefix(LEADERBOARD_PREFIX)
        logger.debug(f"Invalidated cache for player_id={player_id} and {deleted} leaderboards")

    def ping(self) -> bool:
        if not self.redis_client:
            return False

        try:
            return bool(self.redis_client.ping())
        except redis.RedisError:
            return False


# Global cache instance
cache = CacheManager(settings.redis_url, enabled=settings.cache_enabled)
