"""
Template repository using SQLAlchemy ORM
"""

from typing import List, Optional
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.service.auth.models.user import Template
from src.core.utils.clock import ensure_utc, utcnow
from src.infra.models import TemplateModel
from src.core.logger.logger import get_logger

logger = get_logger(__name__)


class TemplateRepository:
    """Repository for template database operations"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _model_to_entity(self, model: TemplateModel) -> Template:
        return Template(
            id=model.id,
            title=model.title,
            description=model.description,
            url=model.url,
            json_data=model.json_data,
            owner_address=model.owner_address,
            moderated=bool(model.moderated),
            deleted_at=ensure_utc(model.deleted_at),
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at)
        )

    async def create(
        self,
        title: str,
        description: Optional[str],
        url: str,
        json_data: str,
        owner_address: str
    ) -> Template:
        template_model = TemplateModel(
            title=title,
            description=description,
            url=url,
            json_data=json_data,
            owner_address=owner_address.lower(),
            moderated=False
        )
        self.session.add(template_model)
        await self.session.commit()
        await self.session.refresh(template_model)

        logger.info(
            "Template created",
            extra={"template_id": template_model.id, "wallet_address": template_model.owner_address}
        )
        return self._model_to_entity(template_model)

    async def get_active(self, template_id: int) -> Optional[Template]:
        """Fetch a template that has not been soft deleted"""
        stmt = select(TemplateModel).execution_options(populate_existing=True).where(
            TemplateModel.id == template_id,
            TemplateModel.deleted_at.is_(None)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._model_to_entity(model) if model else None

    async def list_by_owner(self, owner_address: str) -> List[Template]:
        stmt = (
            select(TemplateModel).execution_options(populate_existing=True)
            .where(
                func.lower(TemplateModel.owner_address) == owner_address.lower(),
                TemplateModel.deleted_at.is_(None)
            )
            .order_by(TemplateModel.id.desc())
        )
        result = await self.session.execute(stmt)
        return [self._model_to_entity(m) for m in result.scalars().all()]

    async def list_moderated(self, offset: int, limit: int) -> List[Template]:
        stmt = (
            select(TemplateModel).execution_options(populate_existing=True)
            .where(TemplateModel.moderated.is_(True), TemplateModel.deleted_at.is_(None))
            .order_by(TemplateModel.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._model_to_entity(m) for m in result.scalars().all()]

    async def count_moderated(self) -> int:
        stmt = (
            select(func.count(TemplateModel.id))
            .where(TemplateModel.moderated.is_(True), TemplateModel.deleted_at.is_(None))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def count(self) -> int:
        stmt = select(func.count(TemplateModel.id)).where(TemplateModel.deleted_at.is_(None))
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def soft_delete(self, template_id: int) -> bool:
        now = utcnow()
        stmt = (
            update(TemplateModel).execution_options(synchronize_session=False)
            .where(TemplateModel.id == template_id, TemplateModel.deleted_at.is_(None))
            .values(deleted_at=now, updated_at=now)
        )
        result = await self.session.execute(stmt)
        await self.session.commit()
        return result.rowcount == 1

    async def set_moderated(self, template_ids: List[int], moderated: bool) -> int:
        """Flip the moderation flag and return how many templates now carry it"""
        if not template_ids:
            return 0
        await self.session.execute(
            update(TemplateModel).execution_options(synchronize_session=False)
            .where(TemplateModel.id.in_(template_ids))
            .values(moderated=moderated, updated_at=utcnow())
        )
        await self.session.commit()

        stmt = select(func.count(TemplateModel.id)).where(
            TemplateModel.id.in_(template_ids),
            TemplateModel.moderated.is_(moderated)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())
