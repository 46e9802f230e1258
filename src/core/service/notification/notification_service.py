"""
Moderator notifications (Telegram chats or the application log)
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List, Optional

import httpx

from src.core.http_client import create_temp_client
from src.core.logger.logger import get_logger
from src.infra.config.settings import get_settings

logger = get_logger(__name__)
settings = get_settings()

MAX_FEEDBACK_LENGTH = 2000
TELEGRAM_API_URL = "https://api.telegram.org"


def format_feedback(feedback: str, email: Optional[str] = None) -> str:
    if len(feedback) > MAX_FEEDBACK_LENGTH:
        feedback = feedback[:MAX_FEEDBACK_LENGTH] + "... (truncated)"
    return (
        "💬 New Feedback Received!\n\n"
        f"📧 Email: {email or 'Not provided'}\n\n"
        f"{feedback}"
    )


class NotificationService(ABC):
    """Interface for notification channels; implementations never raise"""

    @abstractmethod
    async def send_app_creation_notification(
        self, title: str, description: str, app_id: int, total_apps: int
    ) -> bool:
        pass

    @abstractmethod
    async def send_template_creation_notification(
        self, title: str, description: str, template_id: int, total_templates: int
    ) -> bool:
        pass

    @abstractmethod
    async def send_user_registration_notification(self, address: str, total_users: int) -> bool:
        pass

    @abstractmethod
    async def send_feedback_notification(self, feedback: str, email: Optional[str] = None) -> bool:
        pass

    async def close(self) -> None:
        pass


class TelegramNotificationService(NotificationService):
    """Fans every message out to all configured Telegram chats"""

    def __init__(self, bot_token: str, chat_ids: List[str], client: Optional[httpx.AsyncClient] = None):
        self.bot_token = bot_token
        self.chat_ids = chat_ids
        self.client = client or create_temp_client("telegram")

    async def send_app_creation_notification(
        self, title: str, description: str, app_id: int, total_apps: int
    ) -> bool:
        message = (
            f"🆕 New App Created!\n\n📱 *{title}* (ID: {app_id})\n\n{description}"
            f"\n\n📊 Total Apps: *{total_apps}*"
        )
        return await self._send_telegram_message(message)

    async def send_template_creation_notification(
        self, title: str, description: str, template_id: int, total_templates: int
    ) -> bool:
        message = (
            f"🆕 New Template Created!\n\n📋 *{title}* (ID: {template_id})\n\n{description}"
            f"\n\n📊 Total Templates: *{total_templates}*"
        )
        return await self._send_telegram_message(message)

    async def send_user_registration_notification(self, address: str, total_users: int) -> bool:
        message = f"👤 New User Registered!\n\n🔑 Address: `{address}`\n\n📊 Total Users: *{total_users}*"
        return await self._send_telegram_message(message)

    async def send_feedback_notification(self, feedback: str, email: Optional[str] = None) -> bool:
        return await self._send_telegram_message(format_feedback(feedback, email))

    async def _send_to_chat(self, chat_id: str, text: str) -> bool:
        url = f"{TELEGRAM_API_URL}/bot{self.bot_token}/sendMessage"
        try:
            response = await self.client.post(
                url,
                json={"chat_id": chat_id, "text": text, "parse_mode": "Markdown"}
            )
        except httpx.HTTPError as e:
            logger.error(
                "Error sending Telegram message",
                extra={"chat_id": chat_id, "error_type": type(e).__name__, "error": str(e)}
            )
            return False

        if response.status_code >= 400:
            logger.error(
                "Failed to send Telegram message",
                extra={"chat_id": chat_id, "status_code": response.status_code, "response": response.text[:500]}
            )
            return False
        return True

    async def _send_telegram_message(self, text: str) -> bool:
        """True when at least one chat received the message"""
        if not self.chat_ids:
            return False
        results = await asyncio.gather(*(self._send_to_chat(chat_id, text) for chat_id in self.chat_ids))
        return any(results)

    async def close(self) -> None:
        await self.client.aclose()


class LoggingNotificationService(NotificationService):
    """Writes notifications to the log when Telegram is not configured"""

    async def send_app_creation_notification(
        self, title: str, description: str, app_id: int, total_apps: int
    ) -> bool:
        logger.info(
            "[NOTIFICATION] New App Created",
            extra={"title": title, "description": description, "app_id": app_id, "total_apps": total_apps}
        )
        return True

    async def send_template_creation_notification(
        self, title: str, description: str, template_id: int, total_templates: int
    ) -> bool:
        logger.info(
            "[NOTIFICATION] New Template Created",
            extra={
                "title": title,
                "description": description,
                "template_id": template_id,
                "total_templates": total_templates
            }
        )
        return True

    async def send_user_registration_notification(self, address: str, total_users: int) -> bool:
        logger.info(
            "[NOTIFICATION] New User Registered",
            extra={"wallet_address": address, "total_users": total_users}
        )
        return True

    async def send_feedback_notification(self, feedback: str, email: Optional[str] = None) -> bool:
        logger.info("[NOTIFICATION] New Feedback", extra={"feedback": format_feedback(feedback, email)})
        return True


def create_notification_service() -> NotificationService:
    """Telegram when a bot token and chat ids are configured, the log otherwise"""
    if settings.TELEGRAM_BOT_TOKEN and settings.telegram_chat_ids:
        return TelegramNotificationService(settings.TELEGRAM_BOT_TOKEN, settings.telegram_chat_ids)

    logger.warning("Telegram notification service not configured. Using log output instead.")
    return LoggingNotificationService()
