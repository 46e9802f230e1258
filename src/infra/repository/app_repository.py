"""
App repository using SQLAlchemy ORM
"""

from typing import List, Optional
from sqlalchemy import select, update, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.service.auth.models.user import App
from src.core.utils.clock import ensure_utc, utcnow
from src.infra.models import AppModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class AppRepository:
    """Repository for app database operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: AppModel) -> App:
        return App(
            id=model.id,
            name=model.name,
            description=model.description,
            owner_address=model.owner_address,
            template_id=model.template_id,
            json_data=model.json_data,
            moderated=bool(model.moderated),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at)
        )

    async def create(
        self,
        name: str,
        description: Optional[str],
        owner_address: str,
        template_id: int,
        json_data: str
    ) -> App:
        app_model = AppModel(
            name=name,
            description=description,
            owner_address=owner_address.lower(),
            template_id=template_id,
            json_data=json_data,
            moderated=False
        )
        self.session.add(app_model)
        await self.session.commit()
        await self.session.refresh(app_model)

        logger.info(
            "App created",
            extra={"app_id": app_model.id, "wallet_address": app_model.owner_address}
        )
        return self._model_to_entity(app_model)

    async def get_by_id(self, app_id: int) -> Optional[App]:
        stmt = select(AppModel).execution_options(populate_existing=True).where(AppModel.id == app_id)
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def list_by_owner(self, owner_address: str) -> List[App]:
        stmt = (
            select(AppModel).execution_options(populate_existing=True)
            .where(AppModel.owner_address == owner_address.lower())
            .order_by(AppModel.id.desc())
        )
        result = await self.session.execute(stmt)
        return [self._model_to_entity(m) for m in result.scalars().all()]

    async def list_moderated(self, offset: int, limit: int) -> List[App]:
        stmt = (
            select(AppModel).execution_options(populate_existing=True)
            .where(AppModel.moderated.is_(True))
            .order_by(AppModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._model_to_entity(m) for m in result.scalars().all()]

    async def count_moderated(self) -> int:
        result = await self.session.execute(
            select(func.count(AppModel.id)).where(AppModel.moderated.is_(True))
        )
        return int(result.scalar_one())

    async def count(self) -> int:
        result = await self.session.execute(select(func.count(AppModel.id)))
        return int(result.scalar_one())

    async def delete(self, app_id: int) -> bool:
        result = await self.session.execute(delete(AppModel).where(AppModel.id == app_id))
        await self.session.commit()
        return result.rowcount == 1

    async def set_moderated(self, app_ids: List[int], moderated: bool) -> int:
        """Flip the moderation flag and return how many apps now carry it"""
        if not app_ids:
            return 0
        await self.session.execute(
            update(AppModel).execution_options(synchronize_session=False)
            .where(AppModel.id.in_(app_ids))
            .values(moderated=moderated, updated_at=utcnow())
        )
        await self.session.commit()

        result = await self.session.execute(
            select(func.count(AppModel.id)).where(
                AppModel.id.in_(app_ids),
                AppModel.moderated.is_(moderated)
            )
        )
        return int(result.scalar_one())
