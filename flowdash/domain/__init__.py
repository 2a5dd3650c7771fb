"""Domain layer: aggregates, value objects, events, enums, and exceptions.

No dependencies on infrastructure. Used by application and infrastructure layers.
"""

from flowdash.domain.entities import ConnectedApp, Template, Workflow
from flowdash.domain.enums import (
    AppConnectionStatus,
    ExecutionStatus,
    LogLevel,
    StepType,
    WorkflowStatus,
)
from flowdash.domain.exceptions import (
    AuthorizationException,
    ConcurrencyConflictException,
    DependencyUnavailableException,
    FlowdashException,
    PreconditionViolationException,
    ResourceNotFoundException,
    StepExecutionException,
    ValidationException,
)

__all__ = [
    # Aggregates
    "ConnectedApp",
    "Template",
    "Workflow",
    # Enums
    "AppConnectionStatus",
    "ExecutionStatus",
    "LogLevel",
    "StepType",
    "WorkflowStatus",
    # Exceptions
    "AuthorizationException",
    "ConcurrencyConflictException",
    "DependencyUnavailableException",
    "FlowdashException",
    "PreconditionViolationException",
    "ResourceNotFoundException",
    "StepExecutionException",
    "ValidationException",
]
