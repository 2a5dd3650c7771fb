"""Application layer: interfaces, services, use cases.

Depends only on domain and protocol definitions (DIP).
Infrastructure implements the repository interfaces.
"""

from flowdash.application.interfaces import (
    IConnectedAppRepository,
    IDomainEventPublisher,
    IStepExecutor,
    ITemplateRepository,
    IWorkflowRepository,
)
from flowdash.application.services import (
    DomainEventPublisher,
    RetryPolicy,
    WorkflowExecutionService,
)

__all__ = [
    "DomainEventPublisher",
    "IConnectedAppRepository",
    "IDomainEventPublisher",
    "IStepExecutor",
    "ITemplateRepository",
    "IWorkflowRepository",
    "RetryPolicy",
    "WorkflowExecutionService",
]
