"""Domain value objects: identifiers, workflow configuration, execution records."""

from flowdash.domain.value_objects.core import (
    ConnectedAppId,
    TemplateId,
    UserId,
    WorkflowId,
)
from flowdash.domain.value_objects.workflow import (
    WorkflowConfig,
    WorkflowExecution,
    WorkflowExecutionLog,
    WorkflowStep,
    WorkflowTrigger,
)

__all__ = [
    "ConnectedAppId",
    "TemplateId",
    "UserId",
    "WorkflowConfig",
    "WorkflowExecution",
    "WorkflowExecutionLog",
    "WorkflowId",
    "WorkflowStep",
    "WorkflowTrigger",
]
