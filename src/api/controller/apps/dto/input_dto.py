"""
Input DTOs for app API endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CreateAppRequestDto(BaseModel):
    """DTO for app creation; name and payload rules are checked by the validators."""

    name: Optional[str] = None
    description: Optional[str] = None
    signature: str = Field(..., min_length=1, max_length=200, description="Signature of 'Create app: {name}'")
    template_id: int = Field(..., gt=0)
    json_data: str = Field(..., description="App data as a JSON string conforming to the template schema")


class DeleteAppRequestDto(BaseModel):
    signature: str = Field(..., min_length=1, max_length=200, description="Signature of 'Delete application #{id}'")
