"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from flowdash.infrastructure.
"""

from flowdash.application.interfaces.repositories import (
    IConnectedAppRepository,
    ITemplateRepository,
    IWorkflowRepository,
)
from flowdash.application.interfaces.services import (
    EventHandler,
    IDomainEventPublisher,
    IStepExecutor,
    StepContext,
)

__all__ = [
    "EventHandler",
    "IConnectedAppRepository",
    "IDomainEventPublisher",
    "IStepExecutor",
    "ITemplateRepository",
    "IWorkflowRepository",
    "StepContext",
]
