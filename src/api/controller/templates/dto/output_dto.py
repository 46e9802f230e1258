"""
Output DTOs for template API endpoints.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from src.core.service.auth.models.user import Template


class TemplateResponseDto(BaseModel):
    id: int
    title: str
    description: Optional[str] = None
    url: str
    json_data: str
    owner_address: str
    moderated: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, template: Template) -> "TemplateResponseDto":
        return cls(**template.model_dump(exclude={"deleted_at"}))


class PaginationDto(BaseModel):
    total: int
    page: int
    limit: int
    totalPages: int
    hasNextPage: bool
    hasPrevPage: bool


class PaginatedTemplatesResponseDto(BaseModel):
    data: List[TemplateResponseDto]
    pagination: PaginationDto


class MessageResponseDto(BaseModel):
    message: str
