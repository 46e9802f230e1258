"""
AI usage gate: one-time wallet challenges plus a daily request quota
"""

from datetime import datetime, timedelta
from typing import Callable, Optional
from uuid import uuid4

from src.core.exceptions.base import NotFoundError
from src.core.logger.logger import logger
from src.core.service.ai.models import (
    AiChallenge,
    AiRemainingRequests,
    AiUsageVerification,
    UsageWindow,
    VerificationFailure,
)
from src.core.service.auth.models.user import User
from src.core.service.auth.signature_verification import SignatureVerificationService
from src.core.utils.clock import ensure_utc, next_utc_midnight, utcnow
from src.infra.config.settings import settings
from src.infra.repository.user_repository import UserRepository


def effective_usage_window(usage_count: int, reset_date: Optional[datetime], now: datetime) -> UsageWindow:
    """
    Usage counter as it stands at ``now``

    The window closes at the stored reset date (always a UTC midnight). Once
    that instant has passed, or when no window was ever opened, the counter
    is treated as zero and the next window closes at the following midnight.
    """
    reset_date = ensure_utc(reset_date)
    if reset_date is None or reset_date <= now:
        return UsageWindow(usage_count=0, reset_date=next_utc_midnight(now), rolled_over=True)
    return UsageWindow(usage_count=max(0, usage_count), reset_date=reset_date)


class AiUsageService:
    """Gates AI requests behind a signed one-time challenge and a daily quota"""

    def __init__(
        self,
        user_repository: UserRepository,
        signature_verifier: Optional[SignatureVerificationService] = None,
        max_requests: Optional[int] = None,
        challenge_expiry_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.user_repository = user_repository
        self.signature_verifier = signature_verifier or SignatureVerificationService()
        self.max_requests = max_requests if max_requests is not None else settings.MAX_AI_REQUESTS_PER_DAY
        self.challenge_expiry = timedelta(
            seconds=challenge_expiry_seconds if challenge_expiry_seconds is not None else settings.CHALLENGE_EXPIRY_SECONDS
        )
        self.clock = clock

    async def _get_user(self, address: str) -> User:
        user = await self.user_repository.get_by_address(address.lower())
        if not user:
            raise NotFoundError("User not found", details={"address": address.lower()})
        return user

    def _remaining(self, usage_count: int) -> int:
        return max(0, self.max_requests - usage_count)

    def _rejected(self, reason: VerificationFailure, remaining_attempts: int = 0) -> AiUsageVerification:
        return AiUsageVerification(
            success=False,
            remaining_attempts=remaining_attempts,
            max_attempts=self.max_requests,
            reason=reason
        )

    async def _open_window(self, user: User, now: datetime) -> UsageWindow:
        window = effective_usage_window(user.ai_usage_count, user.ai_usage_reset_date, now)
        if window.rolled_over:
            # A concurrent request may have rolled it first; either way the window is fresh
            await self.user_repository.roll_usage_window(user.address, now, window.reset_date)
            logger.debug(
                "AI usage window rolled over",
                extra={"wallet_address": user.address, "reset_date": window.reset_date}
            )
        return window

    async def generate_challenge(self, address: str) -> AiChallenge:
        """
        Issue a new challenge, replacing any outstanding one

        Raises:
            NotFoundError: if the address is not registered
        """
        user = await self._get_user(address)
        now = self.clock()
        window = await self._open_window(user, now)

        challenge = str(uuid4())
        await self.user_repository.store_challenge(user.address, challenge, now)

        logger.info(
            "AI challenge issued",
            extra={"wallet_address": user.address, "usage_count": window.usage_count}
        )

        return AiChallenge(
            challenge=challenge,
            remaining_attempts=self._remaining(window.usage_count),
            max_attempts=self.max_requests,
            reset_date=window.reset_date
        )

    async def verify_challenge(self, address: str, challenge: str, signature: str) -> AiUsageVerification:
        """
        Consume a signed challenge and count one AI request against the quota

        Checks run in order: challenge match, expiry, window rollover, quota,
        signature, then the conditional consume. Every business rejection is
        returned with ``success=False``.

        Raises:
            NotFoundError: if the address is not registered
        """
        user = await self._get_user(address)
        now = self.clock()

        if not challenge or not user.ai_challenge_uuid or user.ai_challenge_uuid != challenge:
            logger.warning("AI challenge mismatch", extra={"wallet_address": user.address})
            return self._rejected(VerificationFailure.INVALID_CHALLENGE)

        issued_at = user.ai_challenge_created_at
        if issued_at is None or now - issued_at > self.challenge_expiry:
            await self.user_repository.invalidate_challenge(user.address, challenge)
            logger.warning(
                "AI challenge expired",
                extra={"wallet_address": user.address, "issued_at": issued_at}
            )
            return self._rejected(VerificationFailure.EXPIRED_CHALLENGE)

        window = await self._open_window(user, now)

        if window.usage_count >= self.max_requests:
            logger.info("AI daily quota exhausted", extra={"wallet_address": user.address})
            return self._rejected(VerificationFailure.QUOTA_EXCEEDED)

        if not self.signature_verifier.verify(challenge, signature, user.address):
            # Burn the token so it cannot be retried with other signatures
            await self.user_repository.invalidate_challenge(user.address, challenge)
            return self._rejected(
                VerificationFailure.INVALID_SIGNATURE,
                remaining_attempts=self._remaining(window.usage_count)
            )

        new_count = await self.user_repository.consume_challenge(user.address, challenge, self.max_requests)
        if new_count is None:
            logger.warning(
                "AI challenge consumed concurrently",
                extra={"wallet_address": user.address}
            )
            return self._rejected(VerificationFailure.INVALID_CHALLENGE)

        logger.info(
            "AI challenge verified",
            extra={"wallet_address": user.address, "usage_count": new_count}
        )
        return AiUsageVerification(
            success=True,
            remaining_attempts=self._remaining(new_count),
            max_attempts=self.max_requests,
            reset_date=window.reset_date
        )

    async def get_remaining_requests(self, address: str) -> AiRemainingRequests:
        """Report the quota without persisting a rollover"""
        user = await self._get_user(address)
        window = effective_usage_window(user.ai_usage_count, user.ai_usage_reset_date, self.clock())
        return AiRemainingRequests(
            remaining_attempts=self._remaining(window.usage_count),
            max_attempts=self.max_requests,
            reset_date=window.reset_date
        )

    async def refund_request(self, address: str, reset_date: Optional[datetime] = None) -> bool:
        """
        Give back one unit of quota after the AI request failed

        With ``reset_date`` the refund only applies while that window is still
        the stored one, so a unit spent before a rollover is not taken off the
        new window.
        """
        refunded = await self.user_repository.refund_ai_request(address.lower(), reset_date)
        logger.info(
            "AI request refunded" if refunded else "AI request refund skipped",
            extra={"wallet_address": address.lower()}
        )
        return refunded
