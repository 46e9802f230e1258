"""
Input DTOs for template API endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field


class CreateTemplateRequestDto(BaseModel):
    """DTO for template creation; content rules are checked by the template validator."""

    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    json_data: Optional[str] = None
    address: Optional[str] = Field(None, description="Signer; defaults to the X-Wallet-Address header")
    signature: str = Field(..., min_length=1, max_length=200, description="Signature of 'Create template: {title}'")


class DeleteTemplateRequestDto(BaseModel):
    address: Optional[str] = None
    signature: str = Field(..., min_length=1, max_length=200, description="Signature of 'Delete template #{id}'")
