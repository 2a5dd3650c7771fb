"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from flowdash.domain.entities import ConnectedApp, Workflow
    from flowdash.domain.events import DomainEvent
    from flowdash.domain.value_objects import UserId, WorkflowStep


@dataclass
class StepContext:
    """What a step executor may read while running one step."""

    workflow: Workflow
    connected_apps: Sequence[ConnectedApp]
    user_id: UserId
    execution_id: str
    ip_address: str | None = None
    # Outputs of earlier steps keyed by step id.
    outputs: dict[str, Any] = field(default_factory=dict)

    def find_app(self, name: str | None) -> ConnectedApp | None:
        """Return the first app in the inventory with this exact name."""
        if name is None:
            return None
        return next((a for a in self.connected_apps if a.name == name), None)


# Step executor interface
class IStepExecutor(Protocol):
    """Protocol for running one step of a given type."""

    async def execute(self, step: WorkflowStep, context: StepContext) -> dict[str, Any] | None:
        """Run the step; return optional output data. Raise to fail the step."""


EventHandler = Callable[["DomainEvent"], Awaitable[None]]


# Domain event publisher interface
class IDomainEventPublisher(Protocol):
    """Protocol for dispatching domain events after a successful write."""

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        """Register handler for an event_type tag."""

    async def publish(self, event: DomainEvent) -> None:
        """Dispatch one event to its subscribers."""

    async def publish_many(self, events: Sequence[DomainEvent]) -> None:
        """Dispatch events in order."""
