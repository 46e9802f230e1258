"""
Runtime switches shared by every API instance through Redis
"""

from typing import Optional

import redis.asyncio as redis

from src.core.exceptions.base import ServiceUnavailableError
from src.core.logger.logger import get_logger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()


class FeatureFlagService:
    """Redis-backed feature flags with configured fallbacks"""

    KEY_PREFIX = "feature_flag"
    SUBMISSIONS_ENABLED = "submissions_enabled"

    def __init__(self, redis_client: Optional[redis.Redis] = None, submissions_default: Optional[bool] = None):
        self.redis = redis_client
        self.submissions_default = (
            settings.SUBMISSIONS_ENABLED_DEFAULT if submissions_default is None else submissions_default
        )

    def _key(self, flag: str) -> str:
        return f"{self.KEY_PREFIX}:{flag}"

    async def _get_bool(self, flag: str, default: bool) -> bool:
        if not self.redis:
            logger.warning("Redis not available - using default feature flag", extra={"flag": flag})
            return default
        try:
            value = await self.redis.get(self._key(flag))
        except redis.RedisError as e:
            logger.error(
                "Failed to read feature flag",
                extra={"flag": flag, "error": str(e)}
            )
            return default
        if value is None:
            return default
        return value == "1"

    async def _set_bool(self, flag: str, enabled: bool) -> None:
        if not self.redis:
            raise ServiceUnavailableError("Feature flag storage is not available")
        try:
            await self.redis.set(self._key(flag), "1" if enabled else "0")
        except redis.RedisError as e:
            logger.error(
                "Failed to write feature flag",
                extra={"flag": flag, "error": str(e)}
            )
            raise ServiceUnavailableError("Feature flag storage is not available")
        logger.info("Feature flag updated", extra={"flag": flag, "enabled": enabled})

    async def get_submissions_enabled(self) -> bool:
        return await self._get_bool(self.SUBMISSIONS_ENABLED, self.submissions_default)

    async def set_submissions_enabled(self, enabled: bool) -> None:
        await self._set_bool(self.SUBMISSIONS_ENABLED, enabled)
