"""
User entity for persistent database storage
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class User(BaseModel):
    """Registered wallet user"""
    address: str = Field(..., pattern=r"^0x[0-9a-f]{40}$", description="Lowercased wallet address")
    win_1_amount: Optional[str] = None
    ai_usage_count: int = Field(default=0, ge=0)
    ai_usage_reset_date: Optional[datetime] = None
    ai_challenge_uuid: Optional[str] = None
    ai_challenge_created_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Template(BaseModel):
    """Moderator-approved app blueprint carrying a JSON Schema"""
    id: int
    title: str
    description: Optional[str] = None
    url: str
    json_data: str
    owner_address: str
    moderated: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class App(BaseModel):
    """User app instantiated from a template"""
    id: int
    name: str
    description: Optional[str] = None
    owner_address: str
    template_id: int
    json_data: Optional[str] = None
    moderated: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
