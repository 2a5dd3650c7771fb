"""Workflow command handlers: create, update, lifecycle transitions, execute, delete, clone.

Each handler loads the aggregate, applies one domain operation, persists it,
then publishes the aggregate's buffered domain events.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flowdash.application.dtos.results import WorkflowOperationResult
from flowdash.application.use_cases.common import (
    load_owned_workflow,
    returns_operation_result,
    to_id,
)
from flowdash.domain.entities import Workflow
from flowdash.domain.value_objects import UserId, WorkflowId
from flowdash.schemas.workflow import WorkflowDetailsInput, parse_workflow_config
from flowdash.shared.telemetry.logging import get_logger
from flowdash.shared.telemetry.tracing import traced

if TYPE_CHECKING:
    from flowdash.application.dtos.commands import (
        ActivateWorkflowCommand,
        CloneWorkflowCommand,
        CreateWorkflowCommand,
        DeleteWorkflowCommand,
        ExecuteWorkflowCommand,
        PauseWorkflowCommand,
        UpdateWorkflowCommand,
    )
    from flowdash.application.interfaces.repositories import IWorkflowRepository
    from flowdash.application.interfaces.services import IDomainEventPublisher
    from flowdash.application.services.workflow_execution_service import (
        WorkflowExecutionService,
    )

logger = get_logger(__name__)


class _WorkflowCommandHandler:
    """Shared wiring: repository, event publisher, persist-then-publish."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        event_publisher: IDomainEventPublisher,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._event_publisher = event_publisher

    async def _load(self, workflow_id: int, user_id: int, action: str, **kwargs: str) -> Workflow:
        return await load_owned_workflow(
            self._workflow_repo,
            to_id(WorkflowId, workflow_id, "workflow_id"),
            to_id(UserId, user_id, "user_id"),
            action,
            **kwargs,
        )

    async def _save(self, workflow: Workflow) -> None:
        if workflow.is_new:
            await self._workflow_repo.save(workflow)
        else:
            await self._workflow_repo.update(workflow)
        await self._event_publisher.publish_many(workflow.pull_domain_events())


class CreateWorkflowHandler(_WorkflowCommandHandler):
    """Creates a draft workflow from a validated config payload."""

    @traced("workflow.create")
    @returns_operation_result("create workflow")
    async def execute(self, command: CreateWorkflowCommand) -> WorkflowOperationResult:
        details = WorkflowDetailsInput(name=command.name, description=command.description)
        config = parse_workflow_config(command.config)
        workflow = Workflow.create(
            user_id=to_id(UserId, command.user_id, "user_id"),
            name=details.name,
            description=details.description,
            config=config,
            icon=command.icon,
            icon_color=command.icon_color,
        )
        await self._save(workflow)
        logger.info("Workflow %s created (user_id=%s)", workflow.id, command.user_id)
        return WorkflowOperationResult.ok(workflow_id=workflow.id.value)


class UpdateWorkflowHandler(_WorkflowCommandHandler):
    """Applies a partial update; fields left as None are unchanged."""

    @traced("workflow.update")
    @returns_operation_result("update workflow")
    async def execute(self, command: UpdateWorkflowCommand) -> WorkflowOperationResult:
        workflow = await self._load(command.workflow_id, command.user_id, "update")

        if command.name is not None or command.description is not None:
            details = WorkflowDetailsInput(
                name=command.name if command.name is not None else workflow.name,
                description=(
                    command.description
                    if command.description is not None
                    else workflow.description
                ),
            )
            workflow.update_details(details.name, details.description)
        if command.config is not None:
            workflow.update_config(parse_workflow_config(command.config))
        if command.icon is not None or command.icon_color is not None:
            workflow.update_icon(
                command.icon if command.icon is not None else workflow.icon,
                command.icon_color if command.icon_color is not None else workflow.icon_color,
            )

        await self._save(workflow)
        return WorkflowOperationResult.ok(workflow_id=command.workflow_id)


class ActivateWorkflowHandler(_WorkflowCommandHandler):
    """Validates the configuration, then moves the workflow to active."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        event_publisher: IDomainEventPublisher,
        execution_service: WorkflowExecutionService,
    ) -> None:
        super().__init__(workflow_repo, event_publisher)
        self._execution_service = execution_service

    @traced("workflow.activate")
    @returns_operation_result("activate workflow")
    async def execute(self, command: ActivateWorkflowCommand) -> WorkflowOperationResult:
        workflow = await self._load(command.workflow_id, command.user_id, "activate")

        validation = await self._execution_service.validate_workflow(workflow.id)
        if not validation.is_valid:
            return WorkflowOperationResult.failure(
                f"Cannot activate workflow: {', '.join(validation.errors)}",
                "PRECONDITION_VIOLATION",
            )

        workflow.activate()
        await self._save(workflow)
        return WorkflowOperationResult.ok(workflow_id=command.workflow_id)


class PauseWorkflowHandler(_WorkflowCommandHandler):
    @traced("workflow.pause")
    @returns_operation_result("pause workflow")
    async def execute(self, command: PauseWorkflowCommand) -> WorkflowOperationResult:
        workflow = await self._load(command.workflow_id, command.user_id, "pause")
        workflow.pause()
        await self._save(workflow)
        return WorkflowOperationResult.ok(workflow_id=command.workflow_id)


class ExecuteWorkflowHandler:
    """Runs a workflow through the execution service."""

    def __init__(self, execution_service: WorkflowExecutionService) -> None:
        self._execution_service = execution_service

    @traced("workflow.execute_command")
    @returns_operation_result("execute workflow")
    async def execute(self, command: ExecuteWorkflowCommand) -> WorkflowOperationResult:
        workflow_id = to_id(WorkflowId, command.workflow_id, "workflow_id")
        user_id = to_id(UserId, command.user_id, "user_id")
        if command.timeout is not None:
            result = await self._execution_service.execute_workflow(
                workflow_id, user_id, command.ip_address, timeout=command.timeout
            )
        else:
            result = await self._execution_service.execute_workflow(
                workflow_id, user_id, command.ip_address
            )

        execution_id = result.execution.id if result.execution else None
        if result.success:
            return WorkflowOperationResult.ok(
                workflow_id=command.workflow_id, execution_id=execution_id
            )
        return WorkflowOperationResult(
            success=False,
            error_message=result.error_message,
            error_code=result.error_code,
            workflow_id=command.workflow_id,
            execution_id=execution_id,
        )


class DeleteWorkflowHandler(_WorkflowCommandHandler):
    """Deletes a draft or paused workflow."""

    @traced("workflow.delete")
    @returns_operation_result("delete workflow")
    async def execute(self, command: DeleteWorkflowCommand) -> WorkflowOperationResult:
        workflow = await self._load(command.workflow_id, command.user_id, "delete")
        workflow.mark_for_deletion()
        await self._workflow_repo.delete(workflow.id)
        await self._event_publisher.publish_many(workflow.pull_domain_events())
        logger.info("Workflow %s deleted (user_id=%s)", command.workflow_id, command.user_id)
        return WorkflowOperationResult.ok(workflow_id=command.workflow_id)


class CloneWorkflowHandler(_WorkflowCommandHandler):
    """Copies a workflow into a new draft owned by the same user."""

    @traced("workflow.clone")
    @returns_operation_result("clone workflow")
    async def execute(self, command: CloneWorkflowCommand) -> WorkflowOperationResult:
        original = await self._load(
            command.workflow_id,
            command.user_id,
            "clone",
            not_found_message="Original workflow not found",
        )
        details = WorkflowDetailsInput(name=command.new_name)
        cloned = original.clone(details.name)
        await self._save(cloned)
        return WorkflowOperationResult.ok(workflow_id=cloned.id.value)
