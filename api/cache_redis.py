"""
Redis caching layer for catalog query results.

Implements cache-aside for the movie list, movie details and actor endpoints.
Keys fold only what the query itself folds, so "Action" and "ACTION" share an
entry while titles are keyed verbatim. Cache failures are logged and treated as misses.
"""

import json
import hashlib
import redis.asyncio as redis
from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from config.settings import CACHE_CONFIG
from logging_config.logger import get_logger

logger = get_logger(__name__)


class CacheKeyPrefix(str, Enum):
    """Redis key prefixes, one per cached endpoint."""
    MOVIES = "movies"      # Format: movies:{md5 of title/category/rating}
    DETAILS = "details"    # Format: details:{md5 of film_id}
    ACTORS = "actors"      # Format: actors:{md5 of film_id}


CACHE_TTL = {
    CacheKeyPrefix.MOVIES: CACHE_CONFIG["movies_ttl"],
    CacheKeyPrefix.DETAILS: CACHE_CONFIG["details_ttl"],
    CacheKeyPrefix.ACTORS: CACHE_CONFIG["actors_ttl"],
}

# Module-level connection pool
_redis_pool: Optional[redis.ConnectionPool] = None


async def init_redis() -> redis.Redis:
    """
    Initialize Redis connection pool and verify the server answers.

    Returns:
        redis.Redis: Redis client instance using the connection pool

    Raises:
        redis.RedisError: If Redis connection fails
    """
    global _redis_pool

    try:
        _redis_pool = redis.ConnectionPool(
            host=CACHE_CONFIG["host"],
            port=CACHE_CONFIG["port"],
            max_connections=CACHE_CONFIG["max_connections"],
            decode_responses=True,
            socket_connect_timeout=CACHE_CONFIG["socket_connect_timeout"],
            socket_keepalive=True,
        )
        client = redis.Redis(connection_pool=_redis_pool)
        await client.ping()

        logger.info("Redis connection pool initialized successfully")
        return client

    except redis.RedisError as e:
        logger.error(f"Failed to initialize Redis pool: {e}")
        raise


async def close_redis(redis_client: redis.Redis) -> None:
    """
    Close Redis client and connection pool.

    Args:
        redis_client: The Redis client to close
    """
    try:
        if redis_client:
            await redis_client.aclose()

        if _redis_pool:
            await _redis_pool.aclose()

        logger.info("Redis connections closed")

    except redis.RedisError as e:
        logger.error(f"Error closing Redis connections: {e}")


# Only parameters whose lookup folds the same way share a key. Category and
# rating match their whitelist through str.lower(); film ids are stripped
# before parsing. Titles are LIKE patterns and are keyed verbatim.
_KEY_NORMALIZERS: Dict[str, Callable[[str], str]] = {
    "category": str.lower,
    "rating": str.lower,
    "film_id": str.strip,
}


def _normalize(name: str, value: Any) -> Any:
    normalizer = _KEY_NORMALIZERS.get(name)
    if normalizer and isinstance(value, str):
        return normalizer(value)
    return value


def make_cache_key(prefix: CacheKeyPrefix, **params) -> str:
    """
    Generate cache key from request parameters.

    Two requests share a key only when they return the same rows:
    category="action" and category="ACTION" do, title="brother" and
    title="BROTHER " do not.
    """
    items = tuple(sorted((k, _normalize(k, v)) for k, v in params.items()))
    digest = hashlib.md5(str(items).encode()).hexdigest()
    return f"{prefix.value}:{digest}"


async def cache_get_rows(
    redis_client: redis.Redis,
    prefix: CacheKeyPrefix,
    **params
) -> Optional[List[Dict[str, Any]]]:
    """
    Get cached rows for a request.

    Returns:
        Cached rows, or None on miss or cache failure
    """
    key = make_cache_key(prefix, **params)
    try:
        raw = await redis_client.get(key)
    except redis.RedisError as e:
        logger.warning(f"Cache read failed for {key}: {e}")
        return None

    logger.debug(f"Cache {'hit' if raw is not None else 'miss'}: {key}")
    if raw is None:
        return None

    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Discarding malformed cache entry: {key}")
        return None


async def cache_set_rows(
    redis_client: redis.Redis,
    prefix: CacheKeyPrefix,
    rows: List[Dict[str, Any]],
    **params
) -> None:
    """Cache rows for a request with the prefix TTL."""
    key = make_cache_key(prefix, **params)
    try:
        await redis_client.setex(key, CACHE_TTL[prefix], json.dumps(rows, default=str))
        logger.debug(f"Cached {len(rows)} rows: {key}")

    except redis.RedisError as e:
        # Don't raise - cache failures shouldn't break the application
        logger.warning(f"Failed to cache rows for {key}: {e}")


async def cache_invalidate_prefix(redis_client: redis.Redis, prefix: CacheKeyPrefix) -> int:
    """
    Delete every cached entry under a prefix.

    Returns:
        Number of keys deleted
    """
    deleted = 0
    try:
        async for key in redis_client.scan_iter(match=f"{prefix.value}:*"):
            deleted += await redis_client.delete(key)
        logger.info(f"Invalidated {deleted} cached {prefix.value} entries")

    except redis.RedisError as e:
        logger.warning(f"Failed to invalidate {prefix.value} cache: {e}")

    return deleted
