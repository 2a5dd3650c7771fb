"""Application use cases: one handler per command or query."""

from flowdash.application.use_cases.connected_apps import (
    ConnectAppHandler,
    DisconnectAppHandler,
    GetAvailableAppsHandler,
    GetConnectedAppsHandler,
)
from flowdash.application.use_cases.templates import (
    CreateFromTemplateHandler,
    GetTemplatesHandler,
)
from flowdash.application.use_cases.workflows import (
    ActivateWorkflowHandler,
    CloneWorkflowHandler,
    CreateWorkflowHandler,
    DeleteWorkflowHandler,
    ExecuteWorkflowHandler,
    GetRecentWorkflowsHandler,
    GetWorkflowHandler,
    GetWorkflowsByUserHandler,
    GetWorkflowStatsHandler,
    PauseWorkflowHandler,
    SearchWorkflowsHandler,
    UpdateWorkflowHandler,
    ValidateWorkflowHandler,
)

__all__ = [
    "ActivateWorkflowHandler",
    "CloneWorkflowHandler",
    "ConnectAppHandler",
    "CreateFromTemplateHandler",
    "CreateWorkflowHandler",
    "DeleteWorkflowHandler",
    "DisconnectAppHandler",
    "ExecuteWorkflowHandler",
    "GetAvailableAppsHandler",
    "GetConnectedAppsHandler",
    "GetRecentWorkflowsHandler",
    "GetTemplatesHandler",
    "GetWorkflowHandler",
    "GetWorkflowStatsHandler",
    "GetWorkflowsByUserHandler",
    "PauseWorkflowHandler",
    "SearchWorkflowsHandler",
    "UpdateWorkflowHandler",
    "ValidateWorkflowHandler",
]
