"""
Input DTOs for feedback API endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field, validator


class FeedbackRequestDto(BaseModel):
    """Free text feedback with an optional contact email."""

    feedback: Optional[str] = Field(None, description="Feedback text")
    email: Optional[str] = Field(None, max_length=320, description="Optional contact email")

    @validator('feedback', 'email')
    def strip_value(cls, v):
        if v is None:
            return v
        v = v.strip()
        return v or None
