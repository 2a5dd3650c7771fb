"""Workflow use cases."""

from flowdash.application.use_cases.workflows.commands import (
    ActivateWorkflowHandler,
    CloneWorkflowHandler,
    CreateWorkflowHandler,
    DeleteWorkflowHandler,
    ExecuteWorkflowHandler,
    PauseWorkflowHandler,
    UpdateWorkflowHandler,
)
from flowdash.application.use_cases.workflows.queries import (
    GetRecentWorkflowsHandler,
    GetWorkflowHandler,
    GetWorkflowsByUserHandler,
    GetWorkflowStatsHandler,
    SearchWorkflowsHandler,
    ValidateWorkflowHandler,
)

__all__ = [
    "ActivateWorkflowHandler",
    "CloneWorkflowHandler",
    "CreateWorkflowHandler",
    "DeleteWorkflowHandler",
    "ExecuteWorkflowHandler",
    "GetRecentWorkflowsHandler",
    "GetWorkflowHandler",
    "GetWorkflowStatsHandler",
    "GetWorkflowsByUserHandler",
    "PauseWorkflowHandler",
    "SearchWorkflowsHandler",
    "UpdateWorkflowHandler",
    "ValidateWorkflowHandler",
]
