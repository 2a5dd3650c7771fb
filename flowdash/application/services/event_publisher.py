"""In-process domain event publisher (implements IDomainEventPublisher)."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from typing import TYPE_CHECKING

from flowdash.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from flowdash.application.interfaces.services import EventHandler
    from flowdash.domain.events import DomainEvent

logger = get_logger(__name__)


class DomainEventPublisher:
    """Dispatches events to handlers subscribed by event_type tag.

    A failing handler is logged and skipped; the write that produced the
    event has already been committed and is not undone.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[EventHandler]] = defaultdict(list)

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        self._handlers[event_type].append(handler)

    async def publish(self, event: DomainEvent) -> None:
        for handler in list(self._handlers.get(event.event_type, ())):
            try:
                await handler(event)
            except Exception:
                logger.exception(
                    "Domain event handler failed (event_type=%s)", event.event_type
                )

    async def publish_many(self, events: Sequence[DomainEvent]) -> None:
        for event in events:
            await self.publish(event)
