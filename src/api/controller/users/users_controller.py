"""
User controller: registration and leaderboards.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from src.api.controller.users.dto.input_dto import RegisterRequestDto
from src.api.controller.users.dto.output_dto import (
    CheckUserResponseDto,
    LeaderboardEntryDto,
    RegisterResponseDto,
    UserRecordDto,
    UsersWithAppCountsResponseDto,
    WinnerDto,
    WinnersResponseDto,
)
from src.api.utils.validators import AddressValidator
from src.core.dependencies import get_notification_service, get_signature_service, get_user_repository
from src.core.exceptions.base import ConflictError, InvalidSignatureError, ValidationError
from src.core.logger.logger import get_logger
from src.core.service.auth.signature_verification import SignatureVerificationService
from src.core.service.notification.notification_service import NotificationService
from src.core.utils.text import trim_address
from src.infra.repository.user_repository import UserRepository

logger = get_logger(__name__)
router = APIRouter(tags=["Users"])

REGISTRATION_MESSAGE = "Web4 Apps Registration"

# Team wallets kept off the public leaderboard
EXCLUDED_ADDRESSES = ["0x980F5aC0Fe183479B87f78E7892f8002fB9D5401"]

LEADERBOARD_LIMIT = 100
WINNERS_LIMIT = 300


@router.get("/check/{address}", response_model=CheckUserResponseDto)
async def check_user(address: str, user_repository: UserRepository = Depends(get_user_repository)):
    address = AddressValidator.normalize(address)
    user = await user_repository.get_by_address(address)
    return CheckUserResponseDto(isRegistered=user is not None, address=address)


@router.post("/register", response_model=RegisterResponseDto, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequestDto,
    user_repository: UserRepository = Depends(get_user_repository),
    signature_service: SignatureVerificationService = Depends(get_signature_service),
    notification_service: NotificationService = Depends(get_notification_service)
):
    """
    Register a wallet by signing the fixed registration message.

    Errors: 400 for a wrong message or malformed address, 401 for a bad
    signature, 409 when the wallet is already registered.
    """
    if request.message is not None and request.message != REGISTRATION_MESSAGE:
        raise ValidationError("Invalid registration message")

    address = AddressValidator.normalize(request.address)

    if not signature_service.verify(REGISTRATION_MESSAGE, request.signature, address):
        raise InvalidSignatureError("Invalid signature")

    if await user_repository.get_by_address(address):
        raise ConflictError("User already registered")

    user = await user_repository.create(address)
    total_users = await user_repository.count()

    sent = await notification_service.send_user_registration_notification(user.address, total_users)
    if not sent:
        logger.warning("Failed to send user registration notification", extra={"wallet_address": user.address})

    return RegisterResponseDto(address=user.address)


@router.get("/with-app-counts", response_model=UsersWithAppCountsResponseDto)
async def users_with_app_counts(
    address: Optional[str] = Query(None, description="Wallet to locate on the leaderboard"),
    user_repository: UserRepository = Depends(get_user_repository)
):
    """Top creators by prize amount and app count, plus the caller's own rank."""
    caller = address.lower() if address else None

    top_users = await user_repository.get_users_with_app_counts(EXCLUDED_ADDRESSES, limit=LEADERBOARD_LIMIT)
    users = [
        LeaderboardEntryDto(
            trimmed_address=trim_address(user_address),
            app_count=app_count,
            is_user=caller is not None and user_address.lower() == caller,
            win_1_amount=win_1_amount
        )
        for user_address, win_1_amount, app_count in top_users
    ]

    user_record = None
    if caller:
        # Rank over the full list so callers outside the top entries still see their place
        ranked = await user_repository.get_users_with_app_counts(EXCLUDED_ADDRESSES)
        for index, (user_address, win_1_amount, app_count) in enumerate(ranked):
            if user_address.lower() == caller:
                user_record = UserRecordDto(
                    trimmed_address=trim_address(user_address),
                    app_count=app_count,
                    is_user=True,
                    rank=index + 1,
                    win_1_amount=win_1_amount
                )
                break

    return UsersWithAppCountsResponseDto(users=users, user_record=user_record)


@router.get("/winners", response_model=WinnersResponseDto)
async def winners(user_repository: UserRepository = Depends(get_user_repository)):
    rows = await user_repository.get_winners(limit=WINNERS_LIMIT)
    return WinnersResponseDto(winners=[
        WinnerDto(address=user_address, app_count=app_count, win_1_amount=win_1_amount)
        for user_address, win_1_amount, app_count in rows
    ])
