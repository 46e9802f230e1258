import redis.asyncio as redis
from functools import lru_cache
from typing import Optional

from src.infra.config.settings import settings
from src.core.logger.logger import logger

@lru_cache()
def get_redis_pool():
    """Get Redis connection pool (cached)"""
    return redis.ConnectionPool.from_url(
        settings.REDIS_URL,
        decode_responses=True,
        max_connections=settings.REDIS_MAX_CONNECTIONS
    )

async def get_redis() -> redis.Redis:
    """Get Redis connection from pool, raising when the server is unreachable"""
    try:
        redis_client = redis.Redis(connection_pool=get_redis_pool())
        await redis_client.ping()
        return redis_client
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise

async def get_optional_redis() -> Optional[redis.Redis]:
    """Redis client for features that degrade to defaults without it"""
    try:
        return await get_redis()
    except Exception:
        return None

async def close_redis() -> None:
    await get_redis_pool().disconnect()
    logger.info("Redis connection pool closed")
