"""Connected app use cases: connect, disconnect, list inventory and catalog."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flowdash.application.dtos.results import QueryResult, WorkflowOperationResult
from flowdash.application.use_cases.common import (
    returns_operation_result,
    returns_query_result,
    to_id,
)
from flowdash.domain.entities import ConnectedApp
from flowdash.domain.exceptions import AuthorizationException, ResourceNotFoundException
from flowdash.domain.value_objects import ConnectedAppId, UserId
from flowdash.schemas.workflow import ConnectAppInput
from flowdash.shared.telemetry.logging import get_logger
from flowdash.shared.telemetry.tracing import traced

if TYPE_CHECKING:
    from flowdash.application.dtos.commands import ConnectAppCommand, DisconnectAppCommand
    from flowdash.application.dtos.queries import (
        GetAvailableAppsQuery,
        GetConnectedAppsQuery,
    )
    from flowdash.application.interfaces.repositories import IConnectedAppRepository
    from flowdash.application.interfaces.services import IDomainEventPublisher

logger = get_logger(__name__)


class ConnectAppHandler:
    """Connects one of the user's apps, creating the record on first use.

    A new record copies description, icon and config from the catalog entry
    of the same name when one exists.
    """

    def __init__(
        self,
        connected_app_repo: IConnectedAppRepository,
        event_publisher: IDomainEventPublisher,
    ) -> None:
        self._connected_app_repo = connected_app_repo
        self._event_publisher = event_publisher

    @traced("connected_app.connect")
    @returns_operation_result("connect app")
    async def execute(self, command: ConnectAppCommand) -> WorkflowOperationResult:
        payload = ConnectAppInput(
            app_name=command.app_name,
            access_token=command.access_token,
            refresh_token=command.refresh_token,
            token_expiry=command.token_expiry,
        )
        user_id = to_id(UserId, command.user_id, "user_id")

        existing = await self._connected_app_repo.find_by_user_id(user_id)
        app = next((a for a in existing if a.name == payload.app_name), None)
        if app is None:
            app = await self._new_app(user_id, payload.app_name)

        app.connect(payload.access_token, payload.refresh_token, payload.token_expiry)
        if app.is_new:
            await self._connected_app_repo.save(app)
        else:
            await self._connected_app_repo.update(app)
        await self._event_publisher.publish_many(app.pull_domain_events())
        logger.info("App %s connected (user_id=%s)", payload.app_name, command.user_id)
        return WorkflowOperationResult.ok(app_id=app.id.value)

    async def _new_app(self, user_id: UserId, name: str) -> ConnectedApp:
        catalog = await self._connected_app_repo.find_available()
        entry = next((a for a in catalog if a.name == name), None)
        if entry is None:
            return ConnectedApp.create(
                user_id, name, description=f"Connected {name} app", icon=name.lower()
            )
        return ConnectedApp.create(
            user_id,
            name,
            description=entry.description,
            icon=entry.icon,
            config=entry.config,
        )


class DisconnectAppHandler:
    def __init__(
        self,
        connected_app_repo: IConnectedAppRepository,
        event_publisher: IDomainEventPublisher,
    ) -> None:
        self._connected_app_repo = connected_app_repo
        self._event_publisher = event_publisher

    @traced("connected_app.disconnect")
    @returns_operation_result("disconnect app")
    async def execute(self, command: DisconnectAppCommand) -> WorkflowOperationResult:
        app_id = to_id(ConnectedAppId, command.app_id, "app_id")
        app = await self._connected_app_repo.find_by_id(app_id)
        if app is None:
            raise ResourceNotFoundException("connected_app", app_id, "Connected app not found")
        if app.user_id is None or not app.belongs_to(to_id(UserId, command.user_id, "user_id")):
            raise AuthorizationException("app", "disconnect")

        app.disconnect()
        await self._connected_app_repo.update(app)
        await self._event_publisher.publish_many(app.pull_domain_events())
        return WorkflowOperationResult.ok(app_id=command.app_id)


class GetConnectedAppsHandler:
    def __init__(self, connected_app_repo: IConnectedAppRepository) -> None:
        self._connected_app_repo = connected_app_repo

    @traced("connected_app.list")
    @returns_query_result("get connected apps")
    async def execute(self, query: GetConnectedAppsQuery) -> QueryResult[list[ConnectedApp]]:
        user_id = to_id(UserId, query.user_id, "user_id")
        if query.connected_only:
            apps = await self._connected_app_repo.find_connected_by_user_id(user_id)
        else:
            apps = await self._connected_app_repo.find_by_user_id(user_id)
        return QueryResult.ok(apps)


class GetAvailableAppsHandler:
    """The system-wide app catalog."""

    def __init__(self, connected_app_repo: IConnectedAppRepository) -> None:
        self._connected_app_repo = connected_app_repo

    @traced("connected_app.catalog")
    @returns_query_result("get available apps")
    async def execute(self, query: GetAvailableAppsQuery) -> QueryResult[list[ConnectedApp]]:
        return QueryResult.ok(await self._connected_app_repo.find_available())
