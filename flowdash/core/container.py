"""Composition root: wires repositories, services and handlers.

``build_container`` picks the repositories for the configured backend.
The SQL backend needs a session: each transaction builds its own container
from database.get_session().
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from flowdash.application.interfaces import (
    IConnectedAppRepository,
    IDomainEventPublisher,
    IStepExecutor,
    ITemplateRepository,
    IWorkflowRepository,
)
from flowdash.application.services import DomainEventPublisher, WorkflowExecutionService
from flowdash.application.use_cases import (
    ActivateWorkflowHandler,
    CloneWorkflowHandler,
    ConnectAppHandler,
    CreateFromTemplateHandler,
    CreateWorkflowHandler,
    DeleteWorkflowHandler,
    DisconnectAppHandler,
    ExecuteWorkflowHandler,
    GetAvailableAppsHandler,
    GetConnectedAppsHandler,
    GetRecentWorkflowsHandler,
    GetTemplatesHandler,
    GetWorkflowHandler,
    GetWorkflowsByUserHandler,
    GetWorkflowStatsHandler,
    PauseWorkflowHandler,
    SearchWorkflowsHandler,
    UpdateWorkflowHandler,
    ValidateWorkflowHandler,
)
from flowdash.core.config import Settings, get_settings
from flowdash.infrastructure.memory import (
    InMemoryConnectedAppRepository,
    InMemoryTemplateRepository,
    InMemoryWorkflowRepository,
)
from flowdash.infrastructure.persistence.repositories import (
    ConnectedAppRepository,
    TemplateRepository,
    WorkflowRepository,
)


@dataclass
class Container:
    """Every handler of the application, built over one set of repositories."""

    settings: Settings
    workflow_repo: IWorkflowRepository
    connected_app_repo: IConnectedAppRepository
    template_repo: ITemplateRepository
    event_publisher: IDomainEventPublisher = field(default_factory=DomainEventPublisher)
    step_executors: dict[str, IStepExecutor] | None = None

    def __post_init__(self) -> None:
        self.execution_service = WorkflowExecutionService(
            self.workflow_repo,
            self.connected_app_repo,
            self.event_publisher,
            step_executors=self.step_executors,
            settings=self.settings,
        )
        wf, apps, tpl, events = (
            self.workflow_repo,
            self.connected_app_repo,
            self.template_repo,
            self.event_publisher,
        )

        # Commands
        self.create_workflow = CreateWorkflowHandler(wf, events)
        self.update_workflow = UpdateWorkflowHandler(wf, events)
        self.activate_workflow = ActivateWorkflowHandler(wf, events, self.execution_service)
        self.pause_workflow = PauseWorkflowHandler(wf, events)
        self.execute_workflow = ExecuteWorkflowHandler(self.execution_service)
        self.delete_workflow = DeleteWorkflowHandler(wf, events)
        self.clone_workflow = CloneWorkflowHandler(wf, events)
        self.create_from_template = CreateFromTemplateHandler(wf, tpl, events)
        self.connect_app = ConnectAppHandler(apps, events)
        self.disconnect_app = DisconnectAppHandler(apps, events)

        # Queries
        self.get_workflow = GetWorkflowHandler(wf)
        self.get_workflows_by_user = GetWorkflowsByUserHandler(wf)
        self.get_recent_workflows = GetRecentWorkflowsHandler(wf, self.settings)
        self.get_workflow_stats = GetWorkflowStatsHandler(wf, apps)
        self.validate_workflow = ValidateWorkflowHandler(self.execution_service)
        self.search_workflows = SearchWorkflowsHandler(wf)
        self.get_templates = GetTemplatesHandler(tpl, self.settings)
        self.get_connected_apps = GetConnectedAppsHandler(apps)
        self.get_available_apps = GetAvailableAppsHandler(apps)


def build_container(
    settings: Settings | None = None,
    *,
    session: AsyncSession | None = None,
    event_publisher: IDomainEventPublisher | None = None,
) -> Container:
    """Build a container for settings.database_backend.

    Raises:
        ValueError: sql backend without a session.
    """
    settings = settings or get_settings()
    publisher = event_publisher or DomainEventPublisher()
    if settings.database_backend == "sql":
        if session is None:
            raise ValueError("The sql backend needs an AsyncSession")
        return Container(
            settings=settings,
            workflow_repo=WorkflowRepository(session),
            connected_app_repo=ConnectedAppRepository(session),
            template_repo=TemplateRepository(session),
            event_publisher=publisher,
        )
    return Container(
        settings=settings,
        workflow_repo=InMemoryWorkflowRepository(),
        connected_app_repo=InMemoryConnectedAppRepository(),
        template_repo=InMemoryTemplateRepository(),
        event_publisher=publisher,
    )
