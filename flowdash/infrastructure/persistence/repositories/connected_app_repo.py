"""Connected app repository (implements IConnectedAppRepository)."""

from __future__ import annotations

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from flowdash.domain.entities import ConnectedApp
from flowdash.domain.enums import AppConnectionStatus
from flowdash.domain.value_objects import ConnectedAppId, UserId
from flowdash.infrastructure.persistence.models.connected_app import ConnectedAppModel
from flowdash.infrastructure.persistence.repositories.base import (
    BaseRepository,
    escape_like,
)
from flowdash.shared.utils.datetime import ensure_utc


def _row_to_app(row: ConnectedAppModel) -> ConnectedApp:
    return ConnectedApp(
        id=ConnectedAppId(row.id),
        user_id=UserId(row.user_id) if row.user_id is not None else None,
        name=row.name,
        description=row.description or "",
        icon=row.icon or "",
        status=AppConnectionStatus(row.status),
        config=dict(row.config or {}),
        access_token=row.access_token,
        refresh_token=row.refresh_token,
        token_expiry=ensure_utc(row.token_expiry),
        last_error=row.last_error,
        created_at=ensure_utc(row.created_at),
        updated_at=ensure_utc(row.updated_at),
        version=row.version,
    )


def _app_values(app: ConnectedApp) -> dict[str, Any]:
    return {
        "user_id": app.user_id.value if app.user_id else None,
        "name": app.name,
        "description": app.description,
        "icon": app.icon,
        "status": app.status.value,
        "config": dict(app.config),
        "access_token": app.access_token,
        "refresh_token": app.refresh_token,
        "token_expiry": app.token_expiry,
        "last_error": app.last_error,
        "created_at": app.created_at,
        "updated_at": app.updated_at,
    }


class ConnectedAppRepository(BaseRepository[ConnectedAppModel]):
    """SQL-backed connected apps and the app catalog."""

    resource_type = "connected_app"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, ConnectedAppModel)

    async def find_by_id(self, app_id: ConnectedAppId) -> ConnectedApp | None:
        row = await self._get_row(app_id.value)
        return _row_to_app(row) if row else None

    async def find_by_user_id(self, user_id: UserId) -> list[ConnectedApp]:
        rows = await self._all(
            self._select()
            .where(ConnectedAppModel.user_id == user_id.value)
            .order_by(ConnectedAppModel.name, ConnectedAppModel.id)
        )
        return [_row_to_app(r) for r in rows]

    async def find_connected_by_user_id(self, user_id: UserId) -> list[ConnectedApp]:
        rows = await self._all(
            self._select()
            .where(
                ConnectedAppModel.user_id == user_id.value,
                ConnectedAppModel.status == AppConnectionStatus.CONNECTED.value,
            )
            .order_by(ConnectedAppModel.name, ConnectedAppModel.id)
        )
        return [_row_to_app(r) for r in rows]

    async def find_available(self) -> list[ConnectedApp]:
        rows = await self._all(
            self._select()
            .where(ConnectedAppModel.user_id.is_(None))
            .order_by(ConnectedAppModel.name)
        )
        return [_row_to_app(r) for r in rows]

    async def find_by_status(self, status: AppConnectionStatus) -> list[ConnectedApp]:
        rows = await self._all(
            self._select()
            .where(ConnectedAppModel.status == status.value)
            .order_by(ConnectedAppModel.id)
        )
        return [_row_to_app(r) for r in rows]

    async def search_by_name(
        self, query: str, user_id: UserId | None = None
    ) -> list[ConnectedApp]:
        stmt = self._select().where(
            ConnectedAppModel.name.ilike(f"%{escape_like(query)}%", escape="\\")
        )
        if user_id is not None:
            stmt = stmt.where(ConnectedAppModel.user_id == user_id.value)
        rows = await self._all(stmt.order_by(ConnectedAppModel.name))
        return [_row_to_app(r) for r in rows]

    async def save(self, app: ConnectedApp) -> None:
        row = await self._insert(_app_values(app))
        app.mark_persisted(ConnectedAppId(row.id), row.version)

    async def update(self, app: ConnectedApp) -> None:
        if app.id is None:
            raise ValueError("Cannot update a connected app that was never saved")
        new_version = await self._compare_and_swap(app.id.value, app.version, _app_values(app))
        app.mark_persisted(app.id, new_version)

    async def delete(self, app_id: ConnectedAppId) -> None:
        await self._delete_row(app_id.value)
