"""
Output DTOs for feedback API endpoints.
"""

from pydantic import BaseModel


class FeedbackResponseDto(BaseModel):
    success: bool
    message: str
