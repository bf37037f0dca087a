"""
Redis helpers.

Redis is optional. When REDIS_URL is unset or the server is unreachable every
helper degrades gracefully and callers fall back to process-local behavior.
"""
import logging
from typing import Optional
import redis
from redis.exceptions import ConnectionError, TimeoutError, RedisError
from core.config import settings

logger = logging.getLogger(__name__)

# Redis connection pool (singleton)
_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> Optional[redis.Redis]:
    """Get Redis client with connection pooling. Returns None if Redis unavailable."""
    global _redis_client

    if _redis_client is not None:
        return _redis_client

    if not settings.REDIS_URL:
        return None

    try:
        _redis_client = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
            retry_on_timeout=True,
            health_check_interval=30
        )
        # Test connection
        _redis_client.ping()
        logger.info("Redis connection established")
        return _redis_client
    except (ConnectionError, TimeoutError, RedisError) as e:
        logger.warning(f"Redis unavailable: {e}. Cross-process locking disabled.")
        _redis_client = None
        return None


def acquire_lock(key: str, token: str, ttl_s: int) -> Optional[bool]:
    """
    Try to take a Redis lock (SET NX with expiry).

    Returns:
        True:  lock acquired
        False: someone else holds it
        None:  Redis unavailable, caller applies its local policy
    """
    client = get_redis_client()
    if not client:
        return None

    try:
        return bool(client.set(key, token, nx=True, ex=max(1, int(ttl_s))))
    except (ConnectionError, TimeoutError, RedisError) as e:
        logger.warning(f"Lock acquire error for key {key}: {e}")
        return None


def release_lock(key: str, token: str) -> None:
    """Release a lock only if we still own it."""
    client = get_redis_client()
    if not client:
        return

    release_lua = """
    if redis.call('GET', KEYS[1]) == ARGV[1] then
      return redis.call('DEL', KEYS[1])
    end
    return 0
    """
    try:
        client.eval(release_lua, 1, key, token)
    except (ConnectionError, TimeoutError, RedisError) as e:
        # Expiry reclaims the key.
        logger.warning(f"Lock release error for key {key}: {e}")
