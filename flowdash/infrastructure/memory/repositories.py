"""In-process repositories (database_backend 'memory').

Aggregates are stored as deep-copied snapshots, so callers never share
mutable state with the store and a stale copy cannot overwrite a newer one:
update() compares versions exactly like the SQL repositories.
"""

from __future__ import annotations

import copy
import itertools
from collections.abc import Callable
from typing import Generic, Protocol, TypeVar

from flowdash.domain.entities import ConnectedApp, Template, Workflow
from flowdash.domain.enums import AppConnectionStatus, WorkflowStatus
from flowdash.domain.exceptions import ConcurrencyConflictException
from flowdash.domain.value_objects import (
    ConnectedAppId,
    TemplateId,
    UserId,
    WorkflowId,
)


class _Aggregate(Protocol):
    id: object
    version: int

    def mark_persisted(self, aggregate_id: object, version: int) -> None: ...

    def pull_domain_events(self) -> list: ...


A = TypeVar("A", bound=_Aggregate)


class _SnapshotStore(Generic[A]):
    """id -> snapshot map with integer id assignment and versioned writes."""

    def __init__(self, resource_type: str, make_id: Callable[[int], object]) -> None:
        self._resource_type = resource_type
        self._make_id = make_id
        self._rows: dict[int, A] = {}
        self._ids = itertools.count(1)

    def get(self, raw_id: int) -> A | None:
        row = self._rows.get(raw_id)
        return copy.deepcopy(row) if row is not None else None

    def all(self) -> list[A]:
        return [copy.deepcopy(r) for r in self._rows.values()]

    def where(self, predicate: Callable[[A], bool]) -> list[A]:
        return [copy.deepcopy(r) for r in self._rows.values() if predicate(r)]

    def insert(self, aggregate: A) -> None:
        raw_id = next(self._ids)
        aggregate.mark_persisted(self._make_id(raw_id), 1)
        self._rows[raw_id] = self._snapshot(aggregate)

    def replace(self, raw_id: int, aggregate: A) -> None:
        stored = self._rows.get(raw_id)
        if stored is None or stored.version != aggregate.version:
            raise ConcurrencyConflictException(self._resource_type, raw_id, aggregate.version)
        aggregate.mark_persisted(aggregate.id, aggregate.version + 1)
        self._rows[raw_id] = self._snapshot(aggregate)

    def remove(self, raw_id: int) -> None:
        self._rows.pop(raw_id, None)

    @staticmethod
    def _snapshot(aggregate: A) -> A:
        snapshot = copy.deepcopy(aggregate)
        # Buffered events belong to the caller's copy only.
        snapshot.pull_domain_events()
        return snapshot


class InMemoryWorkflowRepository:
    """Implements IWorkflowRepository."""

    def __init__(self) -> None:
        self._store: _SnapshotStore[Workflow] = _SnapshotStore("workflow", WorkflowId)

    async def find_by_id(self, workflow_id: WorkflowId) -> Workflow | None:
        return self._store.get(workflow_id.value)

    async def find_by_user_id(self, user_id: UserId) -> list[Workflow]:
        return sorted(
            self._store.where(lambda w: w.user_id == user_id),
            key=lambda w: (w.updated_at, w.id.value),
            reverse=True,
        )

    async def find_recent_by_user_id(self, user_id: UserId, limit: int) -> list[Workflow]:
        ordered = sorted(
            self._store.where(lambda w: w.user_id == user_id),
            key=lambda w: (w.last_run or w.created_at, w.id.value),
            reverse=True,
        )
        return ordered[:limit]

    async def find_active_by_user_id(self, user_id: UserId) -> list[Workflow]:
        return sorted(
            self._store.where(
                lambda w: w.user_id == user_id and w.status == WorkflowStatus.ACTIVE
            ),
            key=lambda w: w.updated_at,
            reverse=True,
        )

    async def find_all(self) -> list[Workflow]:
        return self._store.all()

    async def find_by_status(self, status: WorkflowStatus) -> list[Workflow]:
        return self._store.where(lambda w: w.status == status)

    async def count_by_user_id(self, user_id: UserId) -> int:
        return len(self._store.where(lambda w: w.user_id == user_id))

    async def count_active_by_user_id(self, user_id: UserId) -> int:
        return len(await self.find_active_by_user_id(user_id))

    async def search_by_name(
        self, query: str, user_id: UserId | None = None
    ) -> list[Workflow]:
        needle = query.lower()
        return sorted(
            self._store.where(
                lambda w: needle in w.name.lower()
                and (user_id is None or w.user_id == user_id)
            ),
            key=lambda w: w.name,
        )

    async def save(self, workflow: Workflow) -> None:
        self._store.insert(workflow)

    async def update(self, workflow: Workflow) -> None:
        if workflow.id is None:
            raise ValueError("Cannot update a workflow that was never saved")
        self._store.replace(workflow.id.value, workflow)

    async def delete(self, workflow_id: WorkflowId) -> None:
        self._store.remove(workflow_id.value)


class InMemoryConnectedAppRepository:
    """Implements IConnectedAppRepository."""

    def __init__(self) -> None:
        self._store: _SnapshotStore[ConnectedApp] = _SnapshotStore(
            "connected_app", ConnectedAppId
        )

    async def find_by_id(self, app_id: ConnectedAppId) -> ConnectedApp | None:
        return self._store.get(app_id.value)

    async def find_by_user_id(self, user_id: UserId) -> list[ConnectedApp]:
        return sorted(
            self._store.where(lambda a: a.user_id == user_id),
            key=lambda a: (a.name, a.id.value),
        )

    async def find_connected_by_user_id(self, user_id: UserId) -> list[ConnectedApp]:
        return [a for a in await self.find_by_user_id(user_id) if a.is_connected()]

    async def find_available(self) -> list[ConnectedApp]:
        return sorted(self._store.where(lambda a: a.user_id is None), key=lambda a: a.name)

    async def find_by_status(self, status: AppConnectionStatus) -> list[ConnectedApp]:
        return self._store.where(lambda a: a.status == status)

    async def search_by_name(
        self, query: str, user_id: UserId | None = None
    ) -> list[ConnectedApp]:
        needle = query.lower()
        return sorted(
            self._store.where(
                lambda a: needle in a.name.lower()
                and (user_id is None or a.user_id == user_id)
            ),
            key=lambda a: a.name,
        )

    async def save(self, app: ConnectedApp) -> None:
        self._store.insert(app)

    async def update(self, app: ConnectedApp) -> None:
        if app.id is None:
            raise ValueError("Cannot update a connected app that was never saved")
        self._store.replace(app.id.value, app)

    async def delete(self, app_id: ConnectedAppId) -> None:
        self._store.remove(app_id.value)


class InMemoryTemplateRepository:
    """Implements ITemplateRepository."""

    def __init__(self) -> None:
        self._store: _SnapshotStore[Template] = _SnapshotStore("template", TemplateId)

    async def find_by_id(self, template_id: TemplateId) -> Template | None:
        return self._store.get(template_id.value)

    async def find_all(self) -> list[Template]:
        return sorted(
            self._store.where(lambda t: t.is_active), key=lambda t: (t.name, t.id.value)
        )

    async def find_popular(self, limit: int) -> list[Template]:
        ordered = sorted(
            self._store.where(lambda t: t.is_active),
            key=lambda t: (-t.users_count, t.name),
        )
        return ordered[:limit]

    async def save(self, template: Template) -> None:
        self._store.insert(template)

    async def update(self, template: Template) -> None:
        if template.id is None:
            raise ValueError("Cannot update a template that was never saved")
        self._store.replace(template.id.value, template)
