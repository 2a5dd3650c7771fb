"""Workflow query handlers (read-only)."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flowdash.application.dtos.results import (
    QueryResult,
    ValidationResult,
    WorkflowStatsResult,
)
from flowdash.application.use_cases.common import (
    load_owned_workflow,
    returns_query_result,
    to_id,
)
from flowdash.core.config import Settings, get_settings
from flowdash.domain.enums import WorkflowStatus
from flowdash.domain.value_objects import UserId, WorkflowId
from flowdash.shared.telemetry.tracing import traced

if TYPE_CHECKING:
    from flowdash.application.dtos.queries import (
        GetRecentWorkflowsQuery,
        GetWorkflowQuery,
        GetWorkflowsByUserQuery,
        GetWorkflowStatsQuery,
        SearchWorkflowsQuery,
        ValidateWorkflowQuery,
    )
    from flowdash.application.interfaces.repositories import (
        IConnectedAppRepository,
        IWorkflowRepository,
    )
    from flowdash.application.services.workflow_execution_service import (
        WorkflowExecutionService,
    )
    from flowdash.domain.entities import Workflow


class GetWorkflowHandler:
    """Returns one workflow; another user's workflow is Unauthorized, never data."""

    def __init__(self, workflow_repo: IWorkflowRepository) -> None:
        self._workflow_repo = workflow_repo

    @traced("workflow.get")
    @returns_query_result("get workflow")
    async def execute(self, query: GetWorkflowQuery) -> QueryResult[Workflow]:
        workflow = await load_owned_workflow(
            self._workflow_repo,
            to_id(WorkflowId, query.workflow_id, "workflow_id"),
            to_id(UserId, query.user_id, "user_id"),
            "access",
        )
        return QueryResult.ok(workflow)


class GetWorkflowsByUserHandler:
    def __init__(self, workflow_repo: IWorkflowRepository) -> None:
        self._workflow_repo = workflow_repo

    @traced("workflow.list_by_user")
    @returns_query_result("list workflows")
    async def execute(self, query: GetWorkflowsByUserQuery) -> QueryResult[list[Workflow]]:
        user_id = to_id(UserId, query.user_id, "user_id")
        if query.status is not None:
            workflows = [
                w
                for w in await self._workflow_repo.find_by_user_id(user_id)
                if w.status == query.status
            ]
        else:
            workflows = await self._workflow_repo.find_by_user_id(user_id)
        return QueryResult.ok(workflows)


class GetRecentWorkflowsHandler:
    """Most recently run (or created, when never run) workflows first."""

    def __init__(
        self, workflow_repo: IWorkflowRepository, settings: Settings | None = None
    ) -> None:
        self._workflow_repo = workflow_repo
        self._settings = settings or get_settings()

    @traced("workflow.recent")
    @returns_query_result("get recent workflows")
    async def execute(self, query: GetRecentWorkflowsQuery) -> QueryResult[list[Workflow]]:
        limit = query.limit if query.limit is not None else self._settings.recent_workflows_limit
        if limit < 1:
            return QueryResult.failure("limit must be positive", "VALIDATION_ERROR")
        workflows = await self._workflow_repo.find_recent_by_user_id(
            to_id(UserId, query.user_id, "user_id"), limit
        )
        return QueryResult.ok(workflows)


class GetWorkflowStatsHandler:
    """Dashboard counters for one user."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        connected_app_repo: IConnectedAppRepository,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._connected_app_repo = connected_app_repo

    @traced("workflow.stats")
    @returns_query_result("get workflow stats")
    async def execute(self, query: GetWorkflowStatsQuery) -> QueryResult[WorkflowStatsResult]:
        user_id = to_id(UserId, query.user_id, "user_id")
        workflows = await self._workflow_repo.find_by_user_id(user_id)
        connected = await self._connected_app_repo.find_connected_by_user_id(user_id)

        def count(status: WorkflowStatus) -> int:
            return sum(1 for w in workflows if w.status == status)

        total = len(workflows)
        executions = sum(w.execution_count for w in workflows)
        stats = WorkflowStatsResult(
            total_workflows=total,
            active_workflows=count(WorkflowStatus.ACTIVE),
            paused_workflows=count(WorkflowStatus.PAUSED),
            error_workflows=count(WorkflowStatus.ERROR),
            connected_apps=len(connected),
            templates_used=len({w.template_id for w in workflows if w.template_id}),
            execution_count=executions,
            average_executions_per_workflow=executions / total if total else 0.0,
        )
        return QueryResult.ok(stats)


class ValidateWorkflowHandler:
    def __init__(self, execution_service: WorkflowExecutionService) -> None:
        self._execution_service = execution_service

    @traced("workflow.validate_query")
    @returns_query_result("validate workflow")
    async def execute(self, query: ValidateWorkflowQuery) -> QueryResult[ValidationResult]:
        result = await self._execution_service.validate_workflow(
            to_id(WorkflowId, query.workflow_id, "workflow_id")
        )
        return QueryResult.ok(result)


class SearchWorkflowsHandler:
    """Case-insensitive name search, optionally limited to one owner."""

    def __init__(self, workflow_repo: IWorkflowRepository) -> None:
        self._workflow_repo = workflow_repo

    @traced("workflow.search")
    @returns_query_result("search workflows")
    async def execute(self, query: SearchWorkflowsQuery) -> QueryResult[list[Workflow]]:
        user_id = (
            to_id(UserId, query.user_id, "user_id") if query.user_id is not None else None
        )
        workflows = await self._workflow_repo.search_by_name(query.query.strip(), user_id)
        return QueryResult.ok(workflows)
