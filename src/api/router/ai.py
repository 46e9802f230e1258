"""
AI usage gate and prompt processing API router - delegates to the controller.
"""

from src.api.controller.ai.ai_controller import router

__all__ = ['router']
