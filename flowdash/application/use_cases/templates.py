"""Template use cases: create a workflow from a template, list templates."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flowdash.application.dtos.results import QueryResult, WorkflowOperationResult
from flowdash.application.use_cases.common import (
    returns_operation_result,
    returns_query_result,
    to_id,
)
from flowdash.core.config import Settings, get_settings
from flowdash.domain.entities import Workflow
from flowdash.domain.exceptions import (
    ConcurrencyConflictException,
    ResourceNotFoundException,
)
from flowdash.domain.value_objects import TemplateId, UserId
from flowdash.schemas.workflow import WorkflowDetailsInput
from flowdash.shared.telemetry.logging import get_logger
from flowdash.shared.telemetry.tracing import traced

if TYPE_CHECKING:
    from flowdash.application.dtos.commands import CreateFromTemplateCommand
    from flowdash.application.dtos.queries import GetTemplatesQuery
    from flowdash.application.interfaces.repositories import (
        ITemplateRepository,
        IWorkflowRepository,
    )
    from flowdash.application.interfaces.services import IDomainEventPublisher
    from flowdash.domain.entities import Template
    from flowdash.domain.value_objects import WorkflowId

logger = get_logger(__name__)

# Attempts at bumping users_count when concurrent requests race on one template.
_USAGE_UPDATE_ATTEMPTS = 3


class CreateFromTemplateHandler:
    """Creates a draft workflow from an active template and counts the template use."""

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        template_repo: ITemplateRepository,
        event_publisher: IDomainEventPublisher,
    ) -> None:
        self._workflow_repo = workflow_repo
        self._template_repo = template_repo
        self._event_publisher = event_publisher

    @traced("template.create_workflow")
    @returns_operation_result("create workflow from template")
    async def execute(self, command: CreateFromTemplateCommand) -> WorkflowOperationResult:
        template_id = to_id(TemplateId, command.template_id, "template_id")
        user_id = to_id(UserId, command.user_id, "user_id")
        template = await self._template_repo.find_by_id(template_id)
        if template is None or not template.is_active:
            raise ResourceNotFoundException("template", template_id, "Template not found")

        details = WorkflowDetailsInput(name=command.workflow_name)
        workflow = Workflow.create(
            user_id=user_id,
            name=details.name,
            description=template.description,
            config=template.config.copy(),
            icon=template.icon_type.value,
            icon_color=template.icon_color.value,
            template_id=template_id,
        )
        await self._workflow_repo.save(workflow)
        await self._event_publisher.publish_many(workflow.pull_domain_events())

        await self._record_usage(template, user_id, workflow.id)
        return WorkflowOperationResult.ok(workflow_id=workflow.id.value)

    async def _record_usage(
        self, template: Template, user_id: UserId, workflow_id: WorkflowId
    ) -> None:
        """Bump users_count, reloading on version conflicts.

        The workflow is already stored; losing every race only leaves the
        counter behind, so that case is logged instead of failing the command.
        """
        for attempt in range(1, _USAGE_UPDATE_ATTEMPTS + 1):
            template.mark_as_used(user_id, workflow_id)
            try:
                await self._template_repo.update(template)
            except ConcurrencyConflictException:
                logger.info(
                    "Template %s usage update conflicted (attempt %d)", template.id, attempt
                )
                reloaded = await self._template_repo.find_by_id(template.id)
                if reloaded is None:
                    break
                template = reloaded
                continue
            await self._event_publisher.publish_many(template.pull_domain_events())
            return
        logger.warning(
            "Template %s usage count not updated for workflow %s", template.id, workflow_id
        )


class GetTemplatesHandler:
    """Active templates by name, or the most used ones when popular is set."""

    def __init__(
        self, template_repo: ITemplateRepository, settings: Settings | None = None
    ) -> None:
        self._template_repo = template_repo
        self._settings = settings or get_settings()

    @traced("template.list")
    @returns_query_result("get templates")
    async def execute(self, query: GetTemplatesQuery) -> QueryResult[list[Template]]:
        if query.popular:
            limit = query.limit or self._settings.popular_templates_limit
            return QueryResult.ok(await self._template_repo.find_popular(limit))
        templates = await self._template_repo.find_all()
        if query.limit:
            templates = templates[: query.limit]
        return QueryResult.ok(templates)
