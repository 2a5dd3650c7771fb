"""Workflow repository (implements IWorkflowRepository)."""

from __future__ import annotations

from typing import Any

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession

from flowdash.domain.entities import Workflow
from flowdash.domain.enums import WorkflowStatus
from flowdash.domain.value_objects import TemplateId, UserId, WorkflowConfig, WorkflowId
from flowdash.infrastructure.persistence.models.workflow import WorkflowModel
from flowdash.infrastructure.persistence.repositories.base import (
    BaseRepository,
    escape_like,
)
from flowdash.shared.utils.datetime import ensure_utc


def _row_to_workflow(row: WorkflowModel) -> Workflow:
    return Workflow(
        id=WorkflowId(row.id),
        user_id=UserId(row.user_id),
        name=row.name,
        description=row.description or "",
        config=WorkflowConfig.from_dict(row.config),
        status=WorkflowStatus(row.status),
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        last_run=ensure_utc(row.last_run),
        execution_count=row.execution_count,
        icon=row.icon,
        icon_color=row.icon_color,
        template_id=TemplateId(row.template_id) if row.template_id else None,
        version=row.version,
    )


def _workflow_values(workflow: Workflow) -> dict[str, Any]:
    return {
        "user_id": workflow.user_id.value,
        "name": workflow.name,
        "description": workflow.description,
        "status": workflow.status.value,
        "config": workflow.config.to_dict(),
        "created_at": workflow.created_at,
        "updated_at": workflow.updated_at,
        "last_run": workflow.last_run,
        "execution_count": workflow.execution_count,
        "icon": workflow.icon,
        "icon_color": workflow.icon_color,
        "template_id": workflow.template_id.value if workflow.template_id else None,
    }


class WorkflowRepository(BaseRepository[WorkflowModel]):
    """SQL-backed workflow aggregates."""

    resource_type = "workflow"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, WorkflowModel)

    async def find_by_id(self, workflow_id: WorkflowId) -> Workflow | None:
        row = await self._get_row(workflow_id.value)
        return _row_to_workflow(row) if row else None

    async def find_by_user_id(self, user_id: UserId) -> list[Workflow]:
        rows = await self._all(
            self._select()
            .where(WorkflowModel.user_id == user_id.value)
            .order_by(WorkflowModel.updated_at.desc(), WorkflowModel.id.desc())
        )
        return [_row_to_workflow(r) for r in rows]

    async def find_recent_by_user_id(self, user_id: UserId, limit: int) -> list[Workflow]:
        activity = func.coalesce(WorkflowModel.last_run, WorkflowModel.created_at)
        rows = await self._all(
            self._select()
            .where(WorkflowModel.user_id == user_id.value)
            .order_by(activity.desc(), WorkflowModel.id.desc())
            .limit(limit)
        )
        return [_row_to_workflow(r) for r in rows]

    async def find_active_by_user_id(self, user_id: UserId) -> list[Workflow]:
        rows = await self._all(
            self._select()
            .where(
                WorkflowModel.user_id == user_id.value,
                WorkflowModel.status == WorkflowStatus.ACTIVE.value,
            )
            .order_by(WorkflowModel.updated_at.desc())
        )
        return [_row_to_workflow(r) for r in rows]

    async def find_all(self) -> list[Workflow]:
        rows = await self._all(self._select().order_by(WorkflowModel.id))
        return [_row_to_workflow(r) for r in rows]

    async def find_by_status(self, status: WorkflowStatus) -> list[Workflow]:
        rows = await self._all(
            self._select()
            .where(WorkflowModel.status == status.value)
            .order_by(WorkflowModel.id)
        )
        return [_row_to_workflow(r) for r in rows]

    async def count_by_user_id(self, user_id: UserId) -> int:
        return await self._count(WorkflowModel.user_id == user_id.value)

    async def count_active_by_user_id(self, user_id: UserId) -> int:
        return await self._count(
            WorkflowModel.user_id == user_id.value,
            WorkflowModel.status == WorkflowStatus.ACTIVE.value,
        )

    async def search_by_name(
        self, query: str, user_id: UserId | None = None
    ) -> list[Workflow]:
        stmt = self._select().where(
            WorkflowModel.name.ilike(f"%{escape_like(query)}%", escape="\\")
        )
        if user_id is not None:
            stmt = stmt.where(WorkflowModel.user_id == user_id.value)
        rows = await self._all(stmt.order_by(WorkflowModel.name))
        return [_row_to_workflow(r) for r in rows]

    async def save(self, workflow: Workflow) -> None:
        row = await self._insert(_workflow_values(workflow))
        workflow.mark_persisted(WorkflowId(row.id), row.version)

    async def update(self, workflow: Workflow) -> None:
        if workflow.id is None:
            raise ValueError("Cannot update a workflow that was never saved")
        new_version = await self._compare_and_swap(
            workflow.id.value, workflow.version, _workflow_values(workflow)
        )
        workflow.mark_persisted(workflow.id, new_version)

    async def delete(self, workflow_id: WorkflowId) -> None:
        await self._delete_row(workflow_id.value)
