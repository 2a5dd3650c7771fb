"""Query DTOs: read-only requests."""

from dataclasses import dataclass

from flowdash.domain.enums import WorkflowStatus


@dataclass(frozen=True)
class GetWorkflowQuery:
    workflow_id: int
    user_id: int


@dataclass(frozen=True)
class GetWorkflowsByUserQuery:
    user_id: int
    status: WorkflowStatus | None = None


@dataclass(frozen=True)
class GetRecentWorkflowsQuery:
    user_id: int
    # None falls back to settings.recent_workflows_limit.
    limit: int | None = None


@dataclass(frozen=True)
class GetWorkflowStatsQuery:
    user_id: int


@dataclass(frozen=True)
class ValidateWorkflowQuery:
    workflow_id: int


@dataclass(frozen=True)
class SearchWorkflowsQuery:
    query: str
    user_id: int | None = None


@dataclass(frozen=True)
class GetTemplatesQuery:
    popular: bool = False
    limit: int | None = None


@dataclass(frozen=True)
class GetConnectedAppsQuery:
    user_id: int
    connected_only: bool = False


@dataclass(frozen=True)
class GetAvailableAppsQuery:
    pass
