"""
App API router - delegates to the controller.
"""

from src.api.controller.apps.apps_controller import router

__all__ = ['router']
