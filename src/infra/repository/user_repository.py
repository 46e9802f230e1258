"""
User repository using SQLAlchemy ORM
"""

from datetime import datetime
from typing import List, Optional, Tuple
from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from src.core.service.auth.models.user import User
from src.core.exceptions.base import ConflictError
from src.core.utils.clock import ensure_utc, utcnow
from src.infra.models import UserModel, AppModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class UserRepository:
    """Repository for user database operations using SQLAlchemy ORM"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: UserModel) -> User:
        """Convert SQLAlchemy model to Pydantic entity"""
        return User(
            address=model.address,
            win_1_amount=model.win_1_amount,
            ai_usage_count=model.ai_usage_count or 0,
            ai_usage_reset_date=ensure_utc(model.ai_usage_reset_date),
            ai_challenge_uuid=model.ai_challenge_uuid,
            ai_challenge_created_at=ensure_utc(model.ai_challenge_created_at),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at)
        )

    async def get_by_address(self, address: str) -> Optional[User]:
        stmt = select(UserModel).execution_options(populate_existing=True).where(UserModel.address == address.lower())
        result = await self.session.execute(stmt)
        user_model = result.scalar_one_or_none()
        return self._model_to_entity(user_model) if user_model else None

    async def create(self, address: str) -> User:
        """
        Insert a new user row

        Raises:
            ConflictError: if the address is already registered
        """
        user_model = UserModel(address=address.lower(), ai_usage_count=0)
        self.session.add(user_model)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                f"User already exists (race condition): {e}",
                extra={"wallet_address": address}
            )
            raise ConflictError("User already registered")

        await self.session.refresh(user_model)
        logger.info("New user created in database", extra={"wallet_address": user_model.address})
        return self._model_to_entity(user_model)

    async def count(self) -> int:
        result = await self.session.execute(select(func.count()).select_from(UserModel))
        return int(result.scalar_one())

    # AI usage gate -----------------------------------------------------

    async def store_challenge(
        self,
        address: str,
        challenge_uuid: str,
        created_at: datetime
    ) -> bool:
        """Overwrite the outstanding challenge; any previous token becomes unusable"""
        stmt = (
            update(UserModel).execution_options(synchronize_session=False)
            .where(UserModel.address == address.lower())
            .values(
                ai_challenge_uuid=challenge_uuid,
                ai_challenge_created_at=created_at,
                updated_at=utcnow()
            )
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def roll_usage_window(self, address: str, now: datetime, reset_date: datetime) -> bool:
        """Zero the counter for a new window unless another request already rolled it"""
        stmt = (
            update(UserModel).execution_options(synchronize_session=False)
            .where(
                UserModel.address == address.lower(),
                or_(UserModel.ai_usage_reset_date.is_(None), UserModel.ai_usage_reset_date <= now)
            )
            .values(ai_usage_count=0, ai_usage_reset_date=reset_date, updated_at=utcnow())
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def consume_challenge(self, address: str, challenge_uuid: str, max_count: int) -> Optional[int]:
        """
        Clear the challenge and increment usage in one conditional UPDATE

        The row only matches while ``challenge_uuid`` is still the outstanding
        challenge and the counter is below ``max_count``, so two requests racing
        on the same token cannot both succeed.

        Returns:
            The new usage count, or None when the compare-and-swap lost
        """
        stmt = (
            update(UserModel).execution_options(synchronize_session=False)
            .where(
                UserModel.address == address.lower(),
                UserModel.ai_challenge_uuid == challenge_uuid,
                UserModel.ai_usage_count < max_count
            )
            .values(
                ai_usage_count=UserModel.ai_usage_count + 1,
                ai_challenge_uuid=None,
                ai_challenge_created_at=None,
                updated_at=utcnow()
            )
            .returning(UserModel.ai_usage_count)
        )
        result = await self.session.execute(stmt)
        new_count = result.scalar_one_or_none()
        await self.session.commit()
        return new_count

    async def invalidate_challenge(self, address: str, challenge_uuid: str) -> bool:
        stmt = (
            update(UserModel).execution_options(synchronize_session=False)
            .where(UserModel.address == address.lower(), UserModel.ai_challenge_uuid == challenge_uuid)
            .values(ai_challenge_uuid=None, ai_challenge_created_at=None, updated_at=utcnow())
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def refund_ai_request(self, address: str, reset_date: Optional[datetime] = None) -> bool:
        stmt = (
            update(UserModel).execution_options(synchronize_session=False)
            .where(UserModel.address == address.lower(), UserModel.ai_usage_count > 0)
            .values(ai_usage_count=UserModel.ai_usage_count - 1, updated_at=utcnow())
        )
        if reset_date is not None:
            stmt = stmt.where(UserModel.ai_usage_reset_date == reset_date)
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    # Leaderboards ------------------------------------------------------

    def _app_counts_query(self, excluded_addresses: List[str]):
        app_count = func.count(AppModel.id).label("app_count")
        stmt = (
            select(UserModel.address, UserModel.win_1_amount, app_count)
            .join(AppModel, AppModel.owner_address == UserModel.address)
            .group_by(UserModel.address, UserModel.win_1_amount)
            .having(func.count(AppModel.id) >= 1)
            .order_by(UserModel.win_1_amount.desc().nulls_last(), app_count.desc())
        )
        if excluded_addresses:
            stmt = stmt.where(func.lower(UserModel.address).notin_([a.lower() for a in excluded_addresses]))
        return stmt

    async def get_users_with_app_counts(
        self,
        excluded_addresses: List[str],
        limit: Optional[int] = None
    ) -> List[Tuple[str, Optional[str], int]]:
        stmt = self._app_counts_query(excluded_addresses)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [(row.address, row.win_1_amount, int(row.app_count)) for row in result.all()]

    async def get_winners(self, limit: int = 300) -> List[Tuple[str, str, int]]:
        app_count = func.count(AppModel.id).label("app_count")
        stmt = (
            select(UserModel.address, UserModel.win_1_amount, app_count)
            .join(AppModel, AppModel.owner_address == UserModel.address)
            .where(UserModel.win_1_amount.isnot(None), UserModel.win_1_amount > "0")
            .group_by(UserModel.address, UserModel.win_1_amount)
            .order_by(UserModel.win_1_amount.desc())
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(row.address, row.win_1_amount, int(row.app_count)) for row in result.all()]
