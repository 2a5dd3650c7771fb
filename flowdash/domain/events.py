"""Domain events.

Each event kind is its own immutable record tagged by ``event_type``;
``DomainEvent`` is the union of all kinds. Aggregates buffer events while
they are mutated; the caller drains the buffer with pull_domain_events()
and publishes only after the repository write succeeded.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Literal

from flowdash.domain.enums import WorkflowStatus
from flowdash.shared.utils.datetime import utc_now


@dataclass(frozen=True)
class WorkflowCreated:
    workflow_id: int | None
    user_id: int
    name: str
    occurred_at: datetime = field(default_factory=utc_now)
    event_type: Literal["workflow.created"] = "workflow.created"


@dataclass(frozen=True)
class WorkflowStatusChanged:
    workflow_id: int | None
    user_id: int
    old_status: WorkflowStatus
    new_status: WorkflowStatus
    reason: str | None = None
    occurred_at: datetime = field(default_factory=utc_now)
    event_type: Literal["workflow.status_changed"] = "workflow.status_changed"


@dataclass(frozen=True)
class WorkflowExecuted:
    workflow_id: int | None
    user_id: int
    execution_id: str
    ip_address: str | None = None
    occurred_at: datetime = field(default_factory=utc_now)
    event_type: Literal["workflow.executed"] = "workflow.executed"


@dataclass(frozen=True)
class WorkflowDeleted:
    workflow_id: int | None
    user_id: int
    occurred_at: datetime = field(default_factory=utc_now)
    event_type: Literal["workflow.deleted"] = "workflow.deleted"


@dataclass(frozen=True)
class ConnectedAppConnected:
    app_id: int | None
    user_id: int | None
    app_name: str
    occurred_at: datetime = field(default_factory=utc_now)
    event_type: Literal["connected_app.connected"] = "connected_app.connected"


@dataclass(frozen=True)
class ConnectedAppDisconnected:
    app_id: int | None
    user_id: int | None
    app_name: str
    occurred_at: datetime = field(default_factory=utc_now)
    event_type: Literal["connected_app.disconnected"] = "connected_app.disconnected"


@dataclass(frozen=True)
class ConnectedAppLinked:
    app_id: int | None
    user_id: int | None
    workflow_id: int
    occurred_at: datetime = field(default_factory=utc_now)
    event_type: Literal["connected_app.linked"] = "connected_app.linked"


@dataclass(frozen=True)
class TemplateUsed:
    template_id: int | None
    user_id: int
    workflow_id: int | None
    occurred_at: datetime = field(default_factory=utc_now)
    event_type: Literal["template.used"] = "template.used"


DomainEvent = (
    WorkflowCreated
    | WorkflowStatusChanged
    | WorkflowExecuted
    | WorkflowDeleted
    | ConnectedAppConnected
    | ConnectedAppDisconnected
    | ConnectedAppLinked
    | TemplateUsed
)


class EventRecorder:
    """Mixin giving an aggregate an in-memory domain event buffer."""

    _domain_events: list[DomainEvent]

    def _record(self, event: DomainEvent) -> None:
        if not hasattr(self, "_domain_events"):
            self._domain_events = []
        self._domain_events.append(event)

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        """Events recorded since the last pull (read-only view)."""
        return tuple(getattr(self, "_domain_events", ()))

    def pull_domain_events(self) -> list[DomainEvent]:
        """Return and clear buffered events. Call after a successful write."""
        events = list(getattr(self, "_domain_events", ()))
        self._domain_events = []
        return events

    def _stamp_identity(self, id_field: str, value: int) -> None:
        """Fill ``id_field`` on buffered events recorded before the aggregate had an id."""
        self._domain_events = [
            replace(event, **{id_field: value})
            if getattr(event, id_field, value) is None
            else event
            for event in getattr(self, "_domain_events", ())
        ]
