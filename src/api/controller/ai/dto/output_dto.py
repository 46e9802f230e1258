"""
Output DTOs for AI API endpoints.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field

from src.core.service.ai.models import AiChallenge, AiRemainingRequests, AiUsageVerification
from src.core.utils.clock import to_iso


class AiChallengeResponseDto(BaseModel):
    challenge: str = Field(..., description="UUID to sign with personal_sign")
    remaining_attempts: int
    max_attempts: int
    reset_date: str = Field(..., description="Next quota rollover (ISO 8601, UTC)")

    @classmethod
    def from_challenge(cls, challenge: AiChallenge) -> "AiChallengeResponseDto":
        return cls(
            challenge=challenge.challenge,
            remaining_attempts=challenge.remaining_attempts,
            max_attempts=challenge.max_attempts,
            reset_date=to_iso(challenge.reset_date)
        )


class VerifyChallengeResponseDto(BaseModel):
    success: bool
    remaining_attempts: int
    max_attempts: int
    reason: Optional[str] = None

    @classmethod
    def from_verification(cls, verification: AiUsageVerification) -> "VerifyChallengeResponseDto":
        return cls(
            success=verification.success,
            remaining_attempts=verification.remaining_attempts,
            max_attempts=verification.max_attempts,
            reason=verification.reason.value if verification.reason else None
        )


class RemainingRequestsResponseDto(BaseModel):
    remaining_attempts: int
    max_attempts: int
    reset_date: str

    @classmethod
    def from_remaining(cls, remaining: AiRemainingRequests) -> "RemainingRequestsResponseDto":
        return cls(
            remaining_attempts=remaining.remaining_attempts,
            max_attempts=remaining.max_attempts,
            reset_date=to_iso(remaining.reset_date)
        )


class ProcessPromptDataDto(BaseModel):
    result: Any = Field(..., description="Generated JSON, or the raw reply when it could not be used")
    requiredValidation: bool = Field(..., description="True when the client must review the raw reply")


class ProcessPromptResponseDto(BaseModel):
    success: bool = True
    data: ProcessPromptDataDto
    remaining_attempts: int
    max_attempts: int
