"""
Input DTOs for AI API endpoints.
"""

from pydantic import BaseModel, Field, validator


class VerifyChallengeRequestDto(BaseModel):
    """DTO for challenge verification request."""

    address: str = Field(..., min_length=1, max_length=100, description="Wallet address that signed the challenge")
    challenge: str = Field(..., min_length=1, max_length=64, description="Challenge UUID being signed")
    signature: str = Field(..., min_length=1, max_length=200, description="EIP-191 signature of the challenge")

    @validator('address', 'challenge', 'signature')
    def strip_value(cls, v):
        if not v or not v.strip():
            raise ValueError('Value cannot be empty')
        return v.strip()


class ProcessPromptRequestDto(BaseModel):
    """DTO for AI prompt processing request."""

    prompt: str = Field(..., min_length=1, max_length=10000, description="What the generated app data should contain")
    templateId: int = Field(..., gt=0, description="Template whose JSON Schema constrains the reply")
    challenge: str = Field(..., min_length=1, max_length=64, description="Outstanding AI challenge")
    signature: str = Field(..., min_length=1, max_length=200, description="EIP-191 signature of the challenge")

    @validator('prompt')
    def validate_prompt(cls, v):
        if not v.strip():
            raise ValueError('Prompt cannot be empty')
        return v

    @validator('challenge', 'signature')
    def strip_value(cls, v):
        return v.strip()
