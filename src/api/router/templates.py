"""
Template API router - delegates to the controller.
"""

from src.api.controller.templates.templates_controller import router

__all__ = ['router']
