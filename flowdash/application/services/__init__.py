"""Application services: execution pipeline, step executors, event publishing."""

from flowdash.application.services.event_publisher import DomainEventPublisher
from flowdash.application.services.retry import RetryPolicy
from flowdash.application.services.step_executors import (
    ActionStepExecutor,
    ConditionStepExecutor,
    TransformStepExecutor,
    TriggerStepExecutor,
    default_step_executors,
)
from flowdash.application.services.workflow_execution_service import (
    WorkflowExecutionService,
)

__all__ = [
    "ActionStepExecutor",
    "ConditionStepExecutor",
    "DomainEventPublisher",
    "RetryPolicy",
    "TransformStepExecutor",
    "TriggerStepExecutor",
    "WorkflowExecutionService",
    "default_step_executors",
]
