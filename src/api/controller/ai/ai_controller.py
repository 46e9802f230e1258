"""
AI controller: usage gate endpoints and template-constrained generation.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from src.api.controller.ai.dto.input_dto import ProcessPromptRequestDto, VerifyChallengeRequestDto
from src.api.controller.ai.dto.output_dto import (
    AiChallengeResponseDto,
    ProcessPromptDataDto,
    ProcessPromptResponseDto,
    RemainingRequestsResponseDto,
    VerifyChallengeResponseDto,
)
from src.api.utils.validators import AddressValidator
from src.core.dependencies import (
    get_ai_content_service,
    get_ai_usage_service,
    get_template_repository,
    require_wallet_address,
)
from src.core.exceptions.base import NotFoundError, ServiceUnavailableError, ValidationError
from src.core.exceptions.handler import ErrorResponseBuilder, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.core.service.ai.ai_content_service import AiContentService, TEMPLATE_SYSTEM_PROMPT
from src.core.service.ai.ai_usage_service import AiUsageService
from src.core.utils.clock import to_iso, utcnow
from src.infra.repository.template_repository import TemplateRepository

logger = get_logger(__name__)
router = APIRouter(prefix="/ai", tags=["AI"])

UNPARSEABLE_RESPONSE_MESSAGE = "AI response could not be parsed as valid JSON."


@router.get("/challenge", response_model=AiChallengeResponseDto)
async def get_challenge(
    address: str = Depends(require_wallet_address),
    usage_service: AiUsageService = Depends(get_ai_usage_service)
):
    """
    Issue a one-time challenge for the caller's wallet.

    Any previously issued challenge stops being accepted.
    """
    challenge = await usage_service.generate_challenge(address)
    return AiChallengeResponseDto.from_challenge(challenge)


@router.post("/verify-challenge", response_model=VerifyChallengeResponseDto)
async def verify_challenge(
    request: VerifyChallengeRequestDto,
    usage_service: AiUsageService = Depends(get_ai_usage_service)
):
    """Consume a signed challenge; rejections come back with success=false."""
    address = AddressValidator.normalize(request.address)
    verification = await usage_service.verify_challenge(address, request.challenge, request.signature)
    return VerifyChallengeResponseDto.from_verification(verification)


@router.get("/remaining-requests", response_model=RemainingRequestsResponseDto)
async def get_remaining_requests(
    address: str = Depends(require_wallet_address),
    usage_service: AiUsageService = Depends(get_ai_usage_service)
):
    remaining = await usage_service.get_remaining_requests(address)
    return RemainingRequestsResponseDto.from_remaining(remaining)


@router.post("/process-prompt", response_model=ProcessPromptResponseDto)
async def process_prompt(
    request: ProcessPromptRequestDto,
    address: str = Depends(require_wallet_address),
    usage_service: AiUsageService = Depends(get_ai_usage_service),
    content_service: Optional[AiContentService] = Depends(get_ai_content_service),
    template_repository: TemplateRepository = Depends(get_template_repository)
):
    """
    Generate app JSON for a template from a natural language prompt.

    Requires a signed AI challenge. Quota is only spent once the template
    is known to exist, and is refunded if generation fails.
    """
    if content_service is None:
        raise ServiceUnavailableError("AI service is not available. OPENAI_API_KEY may be missing.")

    template = await template_repository.get_active(request.templateId)
    if not template:
        raise NotFoundError("Template not found")
    if not template.json_data:
        raise ValidationError("Template JSON data is missing")

    verification = await usage_service.verify_challenge(address, request.challenge, request.signature)
    if not verification.success:
        response = ErrorResponseBuilder.build_error_response(
            error_code=ServiceErrorCode.FORBIDDEN,
            message="AI request rejected",
            details={"reason": verification.reason.value if verification.reason else None}
        )
        response["remaining_attempts"] = verification.remaining_attempts
        response["max_attempts"] = verification.max_attempts
        return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content=response)

    logger.info(
        "Processing prompt against template",
        extra={"template_id": template.id, "wallet_address": address}
    )

    try:
        ai_response = await content_service.process_template_prompt(
            request.prompt,
            template.json_data,
            TEMPLATE_SYSTEM_PROMPT
        )
    except Exception as e:
        # The gate already counted this request; a failed generation must not cost quota
        logger.warning(
            "AI generation failed after the usage gate",
            extra={"wallet_address": address, "error_type": type(e).__name__}
        )
        await usage_service.refund_request(address, verification.reset_date)
        raise

    if not ai_response.is_valid:
        data = ProcessPromptDataDto(
            result={
                "rawText": ai_response.raw_response,
                "message": UNPARSEABLE_RESPONSE_MESSAGE,
                "validationErrors": ai_response.validation_errors or [],
                "timestamp": to_iso(utcnow())
            },
            requiredValidation=True
        )
    else:
        data = ProcessPromptDataDto(result=ai_response.parsed_data or {}, requiredValidation=False)

    return ProcessPromptResponseDto(
        success=True,
        data=data,
        remaining_attempts=verification.remaining_attempts,
        max_attempts=verification.max_attempts
    )
