"""
Input DTOs for user API endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field, validator


class RegisterRequestDto(BaseModel):
    """DTO for wallet registration."""

    address: str = Field(..., min_length=1, max_length=100, description="Wallet address being registered")
    signature: str = Field(..., min_length=1, max_length=200, description="Signature of the registration message")
    message: Optional[str] = Field(None, description="Signed message; must equal the registration message when sent")

    @validator('address', 'signature')
    def strip_value(cls, v):
        if not v or not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()
