"""
User registration and leaderboard API router - delegates to the controller.
"""

from src.api.controller.users.users_controller import router

__all__ = ['router']
