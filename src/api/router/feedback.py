"""
Feedback API router - delegates to the controller.
"""

from src.api.controller.feedback.feedback_controller import router

__all__ = ['router']
