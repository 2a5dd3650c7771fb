"""Repository interfaces (ports) for the application layer.

Protocols define contracts that infrastructure implementations must fulfill (DIP).
Repositories load and store whole aggregates. ``save`` assigns identity to a
new aggregate; ``update`` is a compare-and-swap on the aggregate's version and
raises ConcurrencyConflictException when the stored version moved on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from flowdash.domain.entities import ConnectedApp, Template, Workflow
    from flowdash.domain.enums import AppConnectionStatus, WorkflowStatus
    from flowdash.domain.value_objects import (
        ConnectedAppId,
        TemplateId,
        UserId,
        WorkflowId,
    )


# Workflow repository interface
class IWorkflowRepository(Protocol):
    """Protocol for workflow aggregate persistence."""

    async def find_by_id(self, workflow_id: WorkflowId) -> Workflow | None:
        """Return workflow by ID, or None."""

    async def find_by_user_id(self, user_id: UserId) -> list[Workflow]:
        """Return the user's workflows, most recently updated first."""

    async def find_recent_by_user_id(self, user_id: UserId, limit: int) -> list[Workflow]:
        """Return up to limit workflows ordered by last_run (or created_at when never run), newest first."""

    async def find_active_by_user_id(self, user_id: UserId) -> list[Workflow]:
        """Return the user's ACTIVE workflows."""

    async def find_all(self) -> list[Workflow]:
        """Return every workflow."""

    async def find_by_status(self, status: WorkflowStatus) -> list[Workflow]:
        """Return workflows in the given status."""

    async def count_by_user_id(self, user_id: UserId) -> int:
        """Return number of workflows owned by user."""

    async def count_active_by_user_id(self, user_id: UserId) -> int:
        """Return number of ACTIVE workflows owned by user."""

    async def search_by_name(
        self, query: str, user_id: UserId | None = None
    ) -> list[Workflow]:
        """Case-insensitive substring search on name, optionally scoped to an owner."""

    async def save(self, workflow: Workflow) -> None:
        """Insert a new workflow; assigns id and version on the aggregate."""

    async def update(self, workflow: Workflow) -> None:
        """Store changes if the stored version equals workflow.version; bumps version."""

    async def delete(self, workflow_id: WorkflowId) -> None:
        """Remove the workflow; no-op when absent."""


# Connected app repository interface
class IConnectedAppRepository(Protocol):
    """Protocol for connected app persistence."""

    async def find_by_id(self, app_id: ConnectedAppId) -> ConnectedApp | None:
        """Return connected app by ID, or None."""

    async def find_by_user_id(self, user_id: UserId) -> list[ConnectedApp]:
        """Return the user's app inventory (any status)."""

    async def find_connected_by_user_id(self, user_id: UserId) -> list[ConnectedApp]:
        """Return the user's CONNECTED apps."""

    async def find_available(self) -> list[ConnectedApp]:
        """Return the system-wide catalog (apps without an owner)."""

    async def find_by_status(self, status: AppConnectionStatus) -> list[ConnectedApp]:
        """Return apps in the given status."""

    async def search_by_name(
        self, query: str, user_id: UserId | None = None
    ) -> list[ConnectedApp]:
        """Case-insensitive substring search on name, optionally scoped to an owner."""

    async def save(self, app: ConnectedApp) -> None:
        """Insert a new app; assigns id and version on the aggregate."""

    async def update(self, app: ConnectedApp) -> None:
        """Store changes if the stored version equals app.version; bumps version."""

    async def delete(self, app_id: ConnectedAppId) -> None:
        """Remove the app; no-op when absent."""


# Template repository interface
class ITemplateRepository(Protocol):
    """Protocol for template persistence."""

    async def find_by_id(self, template_id: TemplateId) -> Template | None:
        """Return template by ID, or None."""

    async def find_all(self) -> list[Template]:
        """Return active templates ordered by name."""

    async def find_popular(self, limit: int) -> list[Template]:
        """Return active templates ordered by users_count descending."""

    async def save(self, template: Template) -> None:
        """Insert a new template; assigns id and version on the aggregate."""

    async def update(self, template: Template) -> None:
        """Store changes if the stored version equals template.version; bumps version."""
