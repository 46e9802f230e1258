"""
App controller: signed creation from templates, deletion, public listing.
"""

import json
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.controller.apps.dto.input_dto import CreateAppRequestDto, DeleteAppRequestDto
from src.api.controller.apps.dto.output_dto import AppResponseDto, PaginatedAppsResponseDto
from src.api.controller.templates.dto.output_dto import MessageResponseDto, PaginationDto
from src.api.utils.validators import PaginationValidator
from src.core.dependencies import (
    get_app_repository,
    get_feature_flag_service,
    get_notification_service,
    get_signature_service,
    get_template_repository,
    require_wallet_address,
)
from src.core.exceptions.base import ForbiddenError, InvalidSignatureError, NotFoundError
from src.core.logger.logger import get_logger
from src.core.service.auth.signature_verification import SignatureVerificationService
from src.core.service.notification.notification_service import NotificationService
from src.core.service.system.feature_flags import FeatureFlagService
from src.core.service.validation.json_validation import validate_input_data, validate_json
from src.core.service.validation.template_validation import validate_app
from src.core.utils.text import truncate_text
from src.infra.repository.app_repository import AppRepository
from src.infra.repository.template_repository import TemplateRepository

logger = get_logger(__name__)
router = APIRouter(tags=["Apps"])

SUBMISSIONS_DISABLED_MESSAGE = (
    "Submissions are currently disabled. Thank you for your participation in the hackathon!"
)
NOTIFICATION_DESCRIPTION_LENGTH = 200


@router.get("/my-apps", response_model=List[AppResponseDto])
async def my_apps(
    address: str = Depends(require_wallet_address),
    app_repository: AppRepository = Depends(get_app_repository)
):
    apps = await app_repository.list_by_owner(address)
    return [AppResponseDto.from_entity(app) for app in apps]


@router.post("/my-apps", response_model=AppResponseDto, status_code=status.HTTP_201_CREATED)
async def create_app(
    request: CreateAppRequestDto,
    address: str = Depends(require_wallet_address),
    app_repository: AppRepository = Depends(get_app_repository),
    template_repository: TemplateRepository = Depends(get_template_repository),
    feature_flags: FeatureFlagService = Depends(get_feature_flag_service),
    signature_service: SignatureVerificationService = Depends(get_signature_service),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Create an app from a template, signed with 'Create app: {name}'.

    The JSON payload must be a non-empty object or array that satisfies the
    template's JSON Schema.
    """
    if not await feature_flags.get_submissions_enabled():
        raise ForbiddenError(SUBMISSIONS_DISABLED_MESSAGE)

    name = validate_app(request.name, request.description)
    data = validate_json(request.json_data)

    if not signature_service.verify(f"Create app: {name}", request.signature, address):
        raise InvalidSignatureError("Invalid signature")

    template = await template_repository.get_active(request.template_id)
    if not template:
        raise NotFoundError(f"Template with ID {request.template_id} not found")

    validate_input_data(json.loads(template.json_data), data)

    app = await app_repository.create(
        name=name,
        description=request.description or None,
        owner_address=address,
        template_id=template.id,
        json_data=request.json_data
    )

    total_apps = await app_repository.count()
    sent = await notification_service.send_app_creation_notification(
        app.name,
        truncate_text(app.description or "", NOTIFICATION_DESCRIPTION_LENGTH),
        app.id,
        total_apps
    )
    if not sent:
        logger.warning("Failed to send app creation notification", extra={"app_id": app.id})

    return AppResponseDto.from_entity(app)


@router.delete("/my-apps/{app_id}", response_model=MessageResponseDto)
async def delete_app(
    app_id: int,
    request: DeleteAppRequestDto,
    address: str = Depends(require_wallet_address),
    app_repository: AppRepository = Depends(get_app_repository),
    signature_service: SignatureVerificationService = Depends(get_signature_service)
):
    """Delete an app owned by the caller, signed with 'Delete application #{id}'."""
    app = await app_repository.get_by_id(app_id)
    if not app:
        raise NotFoundError("App not found")
    if app.owner_address.lower() != address:
        raise ForbiddenError("Not authorized to delete this app")

    if not signature_service.verify(f"Delete application #{app_id}", request.signature, address):
        raise InvalidSignatureError("Invalid signature")

    await app_repository.delete(app_id)
    logger.info("App deleted", extra={"app_id": app_id, "wallet_address": address})
    return MessageResponseDto(message="App deleted successfully")


@router.get("/apps", response_model=PaginatedAppsResponseDto)
async def list_apps(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    app_repository: AppRepository = Depends(get_app_repository)
):
    """Moderated apps, newest first."""
    page, limit = PaginationValidator.validate(page, limit)
    apps = await app_repository.list_moderated(offset=(page - 1) * limit, limit=limit)
    total = await app_repository.count_moderated()
    return PaginatedAppsResponseDto(
        data=[AppResponseDto.from_entity(app) for app in apps],
        pagination=PaginationDto(**PaginationValidator.build(total, page, limit))
    )


@router.get("/apps/{app_id}", response_model=AppResponseDto)
async def get_app(app_id: int, app_repository: AppRepository = Depends(get_app_repository)):
    app = await app_repository.get_by_id(app_id)
    if not app:
        raise NotFoundError("App not found")
    return AppResponseDto.from_entity(app)
