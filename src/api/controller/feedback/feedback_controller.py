"""
Feedback controller: forwards user feedback to the team chats.
"""

from fastapi import APIRouter, Depends, status

from src.api.controller.feedback.dto.input_dto import FeedbackRequestDto
from src.api.controller.feedback.dto.output_dto import FeedbackResponseDto
from src.core.dependencies import get_notification_service
from src.core.exceptions.base import ValidationError
from src.core.exceptions.handler import ServiceError, ServiceErrorCode
from src.core.logger.logger import get_logger
from src.core.service.notification.notification_service import NotificationService

logger = get_logger(__name__)
router = APIRouter(prefix="/feedback", tags=["Feedback"])

MAX_FEEDBACK_LENGTH = 2000


@router.post("", response_model=FeedbackResponseDto)
async def submit_feedback(
    request: FeedbackRequestDto,
    notification_service: NotificationService = Depends(get_notification_service)
):
    if not request.feedback:
        raise ValidationError("Feedback is required")
    if len(request.feedback) > MAX_FEEDBACK_LENGTH:
        raise ValidationError(f"Feedback exceeds maximum allowed length of {MAX_FEEDBACK_LENGTH} characters")

    sent = await notification_service.send_feedback_notification(request.feedback, request.email)
    if not sent:
        raise ServiceError(
            code=ServiceErrorCode.INTERNAL_ERROR,
            message="Failed to send feedback notification",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    logger.info("Feedback submitted", extra={"length": len(request.feedback), "has_email": bool(request.email)})
    return FeedbackResponseDto(success=True, message="Feedback submitted successfully")
