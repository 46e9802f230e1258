"""
Telegram moderation webhook API router - delegates to the controller.
"""

from src.api.controller.telegram.telegram_controller import router

__all__ = ['router']
