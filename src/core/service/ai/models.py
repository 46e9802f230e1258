from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class VerificationFailure(str, Enum):
    INVALID_CHALLENGE = "invalid_challenge"
    EXPIRED_CHALLENGE = "expired_challenge"
    QUOTA_EXCEEDED = "quota_exceeded"
    INVALID_SIGNATURE = "invalid_signature"


class UsageWindow(BaseModel):
    """Effective quota state of a user at a given instant"""
    usage_count: int = Field(..., ge=0)
    reset_date: datetime
    rolled_over: bool = False


class AiChallenge(BaseModel):
    """Freshly issued one-time challenge"""
    challenge: str = Field(..., description="UUID the wallet must sign")
    remaining_attempts: int = Field(..., ge=0)
    max_attempts: int
    reset_date: datetime

    class Config:
        json_schema_extra = {
            "example": {
                "challenge": "6f1c2a9e-2d4b-4b43-9f0e-7d7f0c1e5a11",
                "remaining_attempts": 10,
                "max_attempts": 10,
                "reset_date": "2025-03-12T00:00:00Z"
            }
        }


class AiUsageVerification(BaseModel):
    """Outcome of a challenge verification; rejections are not exceptions"""
    success: bool
    remaining_attempts: int = Field(..., ge=0)
    max_attempts: int
    reason: Optional[VerificationFailure] = None
    # Window the consumed unit was counted in; set on success only
    reset_date: Optional[datetime] = None


class AiRemainingRequests(BaseModel):
    remaining_attempts: int = Field(..., ge=0)
    max_attempts: int
    reset_date: datetime


class AiContentResult(BaseModel):
    """Language model reply, parsed when it is a JSON object"""
    raw_response: str
    parsed_data: Optional[Dict[str, Any]] = None
    is_valid: bool = False
    validation_errors: Optional[List[str]] = None
