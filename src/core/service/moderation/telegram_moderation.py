"""
Moderation commands received through the Telegram bot webhook
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError

from src.core.exceptions.base import ServiceUnavailableError
from src.core.logger.logger import get_logger
from src.core.service.system.feature_flags import FeatureFlagService
from src.infra.repository.app_repository import AppRepository
from src.infra.repository.template_repository import TemplateRepository

logger = get_logger(__name__)

MAX_RANGE_SIZE = 1000

HELP_TEXT = (
    "Supported commands:\n"
    '- "public apps: 1, 2, 3" or "public apps: 1-10" - Make specified apps public\n'
    '- "public templates: 1, 2, 3" or "public templates: 1-10" - Make specified templates public\n'
    '- "private apps: 1, 2, 3" or "private apps: 1-10" - Make specified apps private\n'
    '- "private templates: 1, 2, 3" or "private templates: 1-10" - Make specified templates private\n'
    '- "enable submissions" / "disable submissions" - Open or close app submissions'
)


class TelegramChat(BaseModel):
    id: int

    class Config:
        extra = "ignore"


class TelegramMessage(BaseModel):
    message_id: Optional[int] = None
    chat: TelegramChat
    text: Optional[str] = None

    class Config:
        extra = "ignore"


class TelegramUpdate(BaseModel):
    update_id: Optional[int] = None
    message: Optional[TelegramMessage] = None

    class Config:
        extra = "ignore"


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(value.strip())
    except ValueError:
        return None


def parse_ids(text: str) -> List[int]:
    """
    Parse ``"1, 2, 5-7"`` into ``[1, 2, 5, 6, 7]``

    Parts that are not integers, reversed ranges and ranges wider than
    MAX_RANGE_SIZE are dropped; only positive ids are kept.
    """
    if not text:
        return []

    ids: List[int] = []
    for part in text.split(","):
        part = part.strip()
        if not part:
            continue

        if "-" in part:
            start_str, _, end_str = part.partition("-")
            start, end = _parse_int(start_str), _parse_int(end_str)
            if start is None or end is None or start > end or end - start >= MAX_RANGE_SIZE:
                continue
            ids.extend(range(start, end + 1))
            continue

        value = _parse_int(part)
        if value is not None:
            ids.append(value)

    return [i for i in ids if i > 0]


def send_message(chat_id: int, text: str) -> Dict[str, Any]:
    """Webhook reply that Telegram executes as a sendMessage call"""
    return {"method": "sendMessage", "chat_id": chat_id, "text": text}


class TelegramModerationService:
    """Executes moderator commands coming from the authorized chat"""

    MODERATION_COMMANDS = {
        "public apps:": ("apps", True),
        "public templates:": ("templates", True),
        "private apps:": ("apps", False),
        "private templates:": ("templates", False),
    }

    def __init__(
        self,
        app_repository: AppRepository,
        template_repository: TemplateRepository,
        feature_flags: FeatureFlagService,
        moderation_chat_id: Optional[str]
    ):
        self.app_repository = app_repository
        self.template_repository = template_repository
        self.feature_flags = feature_flags
        self.moderation_chat_id = moderation_chat_id

    def is_authorized(self, chat_id: int) -> bool:
        return bool(self.moderation_chat_id) and str(chat_id) == str(self.moderation_chat_id).strip()

    async def handle_update(self, update: TelegramUpdate) -> Optional[Dict[str, Any]]:
        """
        Build the reply for one webhook update

        Returns None for updates without text, which are acknowledged silently.
        """
        if not update.message or not update.message.text:
            return None

        chat_id = update.message.chat.id
        message = update.message.text.strip()

        if not self.is_authorized(chat_id):
            logger.warning("Telegram command from unauthorized chat", extra={"chat_id": chat_id})
            return send_message(chat_id, "You have no access to this bot.")

        command = message.lower()

        for prefix, (entity, moderated) in self.MODERATION_COMMANDS.items():
            if command.startswith(prefix):
                return await self._set_moderation(chat_id, message[len(prefix):], prefix, entity, moderated)

        if command in ("enable submissions", "disable submissions"):
            enabled = command.startswith("enable")
            try:
                await self.feature_flags.set_submissions_enabled(enabled)
            except ServiceUnavailableError:
                return send_message(chat_id, "Error updating submissions status")
            state = "enabled" if enabled else "disabled"
            return send_message(chat_id, f"Submissions are now {state}")

        return send_message(chat_id, HELP_TEXT)

    async def _set_moderation(
        self,
        chat_id: int,
        ids_text: str,
        prefix: str,
        entity: str,
        moderated: bool
    ) -> Dict[str, Any]:
        singular = entity[:-1]
        ids = parse_ids(ids_text.strip())
        if not ids:
            return send_message(
                chat_id,
                f'No valid {singular} IDs provided. Format should be "{prefix} 1, 2, 3" or "{prefix} 1-10"'
            )

        repository = self.app_repository if entity == "apps" else self.template_repository
        try:
            updated = await repository.set_moderated(ids, moderated)
        except SQLAlchemyError as e:
            logger.error(
                "Error updating moderation status",
                extra={"entity": entity, "ids": ids, "error": str(e)},
                exc_info=True
            )
            return send_message(chat_id, f"Error updating {singular} moderation status")

        logger.info(
            "Moderation status updated",
            extra={"entity": entity, "ids": ids, "moderated": moderated, "updated": updated}
        )
        visibility = "public" if moderated else "private"
        return send_message(chat_id, f"Successfully made {updated} {singular}(s) {visibility}")
