"""
System status API router - delegates to the controller.
"""

from src.api.controller.system.system_controller import router

__all__ = ['router']
