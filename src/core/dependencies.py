"""
FastAPI dependency injection functions.
Clean, maintainable dependency resolution using FastAPI's native DI system.
"""

from functools import lru_cache
from typing import Optional
from fastapi import Depends, Header
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.utils.validators import AddressValidator
from src.core.exceptions.base import UnauthorizedError
from src.core.service.ai.ai_content_service import AiContentService
from src.core.service.ai.ai_usage_service import AiUsageService
from src.core.service.auth.signature_verification import SignatureVerificationService
from src.core.service.moderation.telegram_moderation import TelegramModerationService
from src.core.service.notification.notification_service import NotificationService, create_notification_service
from src.core.service.system.feature_flags import FeatureFlagService
from src.infra.config.redis import get_optional_redis
from src.infra.config.settings import get_settings
from src.infra.database import get_async_session
from src.infra.repository.app_repository import AppRepository
from src.infra.repository.template_repository import TemplateRepository
from src.infra.repository.user_repository import UserRepository
from src.core.logger.logger import get_logger

logger = get_logger(__name__)
settings = get_settings()


async def get_redis_client() -> Optional[Redis]:
    """Redis client, or None while Redis is unreachable."""
    return await get_optional_redis()


async def get_user_repository(session: AsyncSession = Depends(get_async_session)) -> UserRepository:
    return UserRepository(session)


async def get_template_repository(session: AsyncSession = Depends(get_async_session)) -> TemplateRepository:
    return TemplateRepository(session)


async def get_app_repository(session: AsyncSession = Depends(get_async_session)) -> AppRepository:
    return AppRepository(session)


@lru_cache()
def get_signature_service() -> SignatureVerificationService:
    return SignatureVerificationService()


@lru_cache()
def get_notification_service() -> NotificationService:
    return create_notification_service()


@lru_cache()
def get_ai_content_service() -> Optional[AiContentService]:
    """AI content service, or None when OPENAI_API_KEY is not configured."""
    if not settings.OPENAI_API_KEY:
        logger.warning("OPENAI_API_KEY not set - AI content generation disabled")
        return None
    return AiContentService()


async def get_ai_usage_service(
    user_repository: UserRepository = Depends(get_user_repository),
    signature_service: SignatureVerificationService = Depends(get_signature_service)
) -> AiUsageService:
    return AiUsageService(user_repository, signature_service)


async def get_feature_flag_service(redis_client: Optional[Redis] = Depends(get_redis_client)) -> FeatureFlagService:
    return FeatureFlagService(redis_client)


async def get_moderation_service(
    app_repository: AppRepository = Depends(get_app_repository),
    template_repository: TemplateRepository = Depends(get_template_repository),
    feature_flags: FeatureFlagService = Depends(get_feature_flag_service)
) -> TelegramModerationService:
    return TelegramModerationService(
        app_repository,
        template_repository,
        feature_flags,
        settings.TELEGRAM_MODERATION_CHAT_ID
    )


async def require_wallet_address(x_wallet_address: Optional[str] = Header(None)) -> str:
    """
    Wallet address the caller acts as, taken from the X-Wallet-Address header.

    The header is only a claim: every state-changing route also checks a
    signature made by this address.
    """
    if not x_wallet_address:
        raise UnauthorizedError("Unauthorized - Wallet address required")
    return AddressValidator.normalize(x_wallet_address)
