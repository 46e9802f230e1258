"""
Output DTOs for app API endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.api.controller.templates.dto.output_dto import PaginationDto
from src.core.service.auth.models.user import App


class AppResponseDto(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    owner_address: str
    template_id: int
    json_data: Optional[str] = None
    moderated: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, app: App) -> "AppResponseDto":
        return cls(**app.model_dump())


class PaginatedAppsResponseDto(BaseModel):
    data: List[AppResponseDto]
    pagination: PaginationDto
