"""
Output DTOs for system API endpoints.
"""

from pydantic import BaseModel


class SubmissionsStatusResponseDto(BaseModel):
    areSubmissionsEnabled: bool
    message: str
