"""Application DTOs: commands, queries, and result envelopes."""

from flowdash.application.dtos.commands import (
    ActivateWorkflowCommand,
    CloneWorkflowCommand,
    ConnectAppCommand,
    CreateFromTemplateCommand,
    CreateWorkflowCommand,
    DeleteWorkflowCommand,
    DisconnectAppCommand,
    ExecuteWorkflowCommand,
    PauseWorkflowCommand,
    UpdateWorkflowCommand,
)
from flowdash.application.dtos.queries import (
    GetAvailableAppsQuery,
    GetConnectedAppsQuery,
    GetRecentWorkflowsQuery,
    GetTemplatesQuery,
    GetWorkflowQuery,
    GetWorkflowsByUserQuery,
    GetWorkflowStatsQuery,
    SearchWorkflowsQuery,
    ValidateWorkflowQuery,
)
from flowdash.application.dtos.results import (
    ExecutionResult,
    QueryResult,
    ValidationResult,
    WorkflowOperationResult,
    WorkflowStatsResult,
)

__all__ = [
    "ActivateWorkflowCommand",
    "CloneWorkflowCommand",
    "ConnectAppCommand",
    "CreateFromTemplateCommand",
    "CreateWorkflowCommand",
    "DeleteWorkflowCommand",
    "DisconnectAppCommand",
    "ExecuteWorkflowCommand",
    "ExecutionResult",
    "GetAvailableAppsQuery",
    "GetConnectedAppsQuery",
    "GetRecentWorkflowsQuery",
    "GetTemplatesQuery",
    "GetWorkflowQuery",
    "GetWorkflowStatsQuery",
    "GetWorkflowsByUserQuery",
    "PauseWorkflowCommand",
    "QueryResult",
    "SearchWorkflowsQuery",
    "UpdateWorkflowCommand",
    "ValidateWorkflowQuery",
    "ValidationResult",
    "WorkflowOperationResult",
    "WorkflowStatsResult",
]
