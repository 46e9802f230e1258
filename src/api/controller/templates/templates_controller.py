"""
Template controller: signed creation and deletion, public listing.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.controller.templates.dto.input_dto import CreateTemplateRequestDto, DeleteTemplateRequestDto
from src.api.controller.templates.dto.output_dto import (
    MessageResponseDto,
    PaginatedTemplatesResponseDto,
    PaginationDto,
    TemplateResponseDto,
)
from src.api.utils.validators import AddressValidator, PaginationValidator
from src.core.dependencies import (
    get_notification_service,
    get_signature_service,
    get_template_repository,
    require_wallet_address,
)
from src.core.exceptions.base import ForbiddenError, InvalidSignatureError, NotFoundError, ValidationError
from src.core.logger.logger import get_logger
from src.core.service.auth.signature_verification import SignatureVerificationService
from src.core.service.notification.notification_service import NotificationService
from src.core.service.validation.template_validation import validate_template
from src.core.utils.text import truncate_text
from src.infra.repository.template_repository import TemplateRepository

logger = get_logger(__name__)
router = APIRouter(prefix="/templates", tags=["Templates"])

NOTIFICATION_DESCRIPTION_LENGTH = 200


def _signer(body_address: Optional[str], header_address: str) -> str:
    """The body may name the signer, but only as the authenticated wallet"""
    if not body_address:
        return header_address
    address = AddressValidator.normalize(body_address)
    if address != header_address:
        raise ForbiddenError("Address does not match authenticated wallet")
    return address


@router.post("", response_model=TemplateResponseDto, status_code=status.HTTP_201_CREATED)
async def create_template(
    request: CreateTemplateRequestDto,
    wallet_address: str = Depends(require_wallet_address),
    template_repository: TemplateRepository = Depends(get_template_repository),
    signature_service: SignatureVerificationService = Depends(get_signature_service),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """Create an unmoderated template signed with 'Create template: {title}'."""
    address = _signer(request.address, wallet_address)

    validate_template(request.title, request.description, request.url, request.json_data)

    if not signature_service.verify(f"Create template: {request.title}", request.signature, address):
        raise InvalidSignatureError("Invalid signature")

    template = await template_repository.create(
        title=request.title,
        description=request.description,
        url=request.url,
        json_data=request.json_data,
        owner_address=address
    )

    total_templates = await template_repository.count()
    sent = await notification_service.send_template_creation_notification(
        template.title,
        truncate_text(template.description or "", NOTIFICATION_DESCRIPTION_LENGTH),
        template.id,
        total_templates
    )
    if not sent:
        logger.warning("Failed to send template creation notification", extra={"template_id": template.id})

    return TemplateResponseDto.from_entity(template)


@router.get("/my", response_model=List[TemplateResponseDto])
async def my_templates(
    address: Optional[str] = Query(None),
    wallet_address: str = Depends(require_wallet_address),
    template_repository: TemplateRepository = Depends(get_template_repository)
):
    if not address:
        raise ValidationError("Address parameter is required")
    templates = await template_repository.list_by_owner(address)
    return [TemplateResponseDto.from_entity(t) for t in templates]


@router.get("/{template_id}", response_model=TemplateResponseDto)
async def get_template(template_id: int, template_repository: TemplateRepository = Depends(get_template_repository)):
    template = await template_repository.get_active(template_id)
    if not template:
        raise NotFoundError("Template not found")
    return TemplateResponseDto.from_entity(template)


@router.delete("/{template_id}", response_model=MessageResponseDto)
async def delete_template(
    template_id: int,
    request: DeleteTemplateRequestDto,
    wallet_address: str = Depends(require_wallet_address),
    template_repository: TemplateRepository = Depends(get_template_repository),
    signature_service: SignatureVerificationService = Depends(get_signature_service)
):
    """Soft delete a template owned by the caller, signed with 'Delete template #{id}'."""
    address = _signer(request.address, wallet_address)

    template = await template_repository.get_active(template_id)
    if not template:
        raise NotFoundError("Template not found")

    if template.owner_address.lower() != address:
        raise ForbiddenError("Not authorized to delete this template")

    if not signature_service.verify(f"Delete template #{template_id}", request.signature, address):
        raise InvalidSignatureError("Invalid signature")

    await template_repository.soft_delete(template_id)
    logger.info("Template deleted", extra={"template_id": template_id, "wallet_address": address})
    return MessageResponseDto(message="Template deleted successfully")


@router.get("", response_model=PaginatedTemplatesResponseDto)
async def list_templates(
    page: Optional[int] = Query(None),
    limit: Optional[int] = Query(None),
    template_repository: TemplateRepository = Depends(get_template_repository)
):
    """Moderated templates, newest first."""
    page, limit = PaginationValidator.validate(page, limit)
    templates = await template_repository.list_moderated(offset=(page - 1) * limit, limit=limit)
    total = await template_repository.count_moderated()
    return PaginatedTemplatesResponseDto(
        data=[TemplateResponseDto.from_entity(t) for t in templates],
        pagination=PaginationDto(**PaginationValidator.build(total, page, limit))
    )
