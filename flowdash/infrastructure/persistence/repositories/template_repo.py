"""Template repository (implements ITemplateRepository)."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from flowdash.domain.entities import Template
from flowdash.domain.enums import TemplateIconColor, TemplateIconType
from flowdash.domain.value_objects import TemplateId, WorkflowConfig
from flowdash.infrastructure.persistence.models.template import TemplateModel
from flowdash.infrastructure.persistence.repositories.base import BaseRepository
from flowdash.shared.utils.datetime import ensure_utc


def _row_to_template(row: TemplateModel) -> Template:
    return Template(
        id=TemplateId(row.id),
        name=row.name,
        description=row.description or "",
        icon_type=TemplateIconType(row.icon_type),
        icon_color=TemplateIconColor(row.icon_color),
        config=WorkflowConfig.from_dict(row.config),
        users_count=row.users_count,
        is_active=row.is_active,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        version=row.version,
    )


def _template_values(template: Template) -> dict[str, Any]:
    return {
        "name": template.name,
        "description": template.description,
        "icon_type": template.icon_type.value,
        "icon_color": template.icon_color.value,
        "config": template.config.to_dict(),
        "users_count": template.users_count,
        "is_active": template.is_active,
        "created_at": template.created_at,
        "updated_at": template.updated_at,
    }


class TemplateRepository(BaseRepository[TemplateModel]):
    resource_type = "template"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, TemplateModel)

    async def find_by_id(self, template_id: TemplateId) -> Template | None:
        row = await self._get_row(template_id.value)
        return _row_to_template(row) if row else None

    async def find_all(self) -> list[Template]:
        rows = await self._all(
            self._select()
            .where(TemplateModel.is_active.is_(True))
            .order_by(TemplateModel.name, TemplateModel.id)
        )
        return [_row_to_template(r) for r in rows]

    async def find_popular(self, limit: int) -> list[Template]:
        rows = await self._all(
            self._select()
            .where(TemplateModel.is_active.is_(True))
            .order_by(TemplateModel.users_count.desc(), TemplateModel.name)
            .limit(limit)
        )
        return [_row_to_template(r) for r in rows]

    async def save(self, template: Template) -> None:
        row = await self._insert(_template_values(template))
        template.mark_persisted(TemplateId(row.id), row.version)

    async def update(self, template: Template) -> None:
        if template.id is None:
            raise ValueError("Cannot update a template that was never saved")
        new_version = await self._compare_and_swap(
            template.id.value, template.version, _template_values(template)
        )
        template.mark_persisted(template.id, new_version)
