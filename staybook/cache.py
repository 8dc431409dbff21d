import json
import logging
from typing import Any, Optional

from redis import Redis
from redis.exceptions import RedisError

logger = logging.getLogger("listing_cache")

OPTIONS_KEY = "listing_options"


def listing_key(listing_id: str) -> str:
    return f"listing_{listing_id}"


def get_cached(redis_client: Optional[Redis], key: str) -> Optional[Any]:
    if redis_client is None:
        return None
    try:
        cached = redis_client.get(key)
    except RedisError as e:
        logger.error(f"Failed to read {key} from Redis: {e}")
        return None
    return json.loads(cached) if cached else None


def set_cached(redis_client: Optional[Redis], key: str, data: Any, ttl: int) -> None:
    if redis_client is None:
        return
    try:
        # default=str handles dates and Decimals
        redis_client.set(key, json.dumps(data, default=str), ex=ttl)
    except RedisError as e:
        logger.error(f"Failed to write {key} to Redis: {e}")


def invalidate(redis_client: Optional[Redis], *keys: str) -> None:
    if redis_client is None or not keys:
        return
    try:
        redis_client.delete(*keys)
        logger.info(f"Invalidated Redis cache for {', '.join(keys)}.")
    except RedisError as e:
        logger.error(f"Failed to invalidate Redis cache: {e}")
