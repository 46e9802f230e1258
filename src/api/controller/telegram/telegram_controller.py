"""
Telegram controller: moderation bot webhook.

Telegram retries any update that is not answered with 200, so every
outcome here, including failures, is acknowledged with 200.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response
from pydantic import ValidationError as PydanticValidationError

from src.core.dependencies import get_moderation_service
from src.core.logger.logger import get_logger
from src.core.service.moderation.telegram_moderation import TelegramModerationService, TelegramUpdate

logger = get_logger(__name__)
router = APIRouter(prefix="/telegram", tags=["Telegram"])


@router.post("/webhook")
async def telegram_webhook(
    request: Request,
    moderation_service: TelegramModerationService = Depends(get_moderation_service)
):
    try:
        payload = await request.json()
        update = TelegramUpdate.model_validate(payload)
    except (ValueError, PydanticValidationError) as e:
        logger.warning("Ignoring malformed Telegram update", extra={"error": str(e)})
        return Response(status_code=200)

    try:
        reply = await moderation_service.handle_update(update)
    except Exception as e:
        logger.error("Error handling Telegram update", extra={"error": str(e)}, exc_info=True)
        return Response(status_code=200)

    if reply is None:
        return Response(status_code=200)
    return JSONResponse(status_code=200, content=reply)
