"""Pytest configuration and fixtures for flowdash.

Unit tests run against the in-memory repositories with instant built-in
steps (step_delay_scale=0). Repository integration tests use the
``db_session`` fixture: a fresh SQLite database (aiosqlite) per test.
"""

from collections.abc import Callable
from datetime import timedelta
from typing import Any

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from flowdash.application.services import DomainEventPublisher, WorkflowExecutionService
from flowdash.core.config import Settings, get_settings
from flowdash.core.container import Container, build_container
from flowdash.domain.entities import ConnectedApp, Template, Workflow
from flowdash.domain.enums import TemplateIconColor, TemplateIconType
from flowdash.domain.value_objects import UserId, WorkflowConfig, WorkflowStep
from flowdash.infrastructure.memory import (
    InMemoryConnectedAppRepository,
    InMemoryTemplateRepository,
    InMemoryWorkflowRepository,
)
from flowdash.shared.utils.datetime import utc_now

OWNER = UserId(1)
OTHER_USER = UserId(2)


class RecordingPublisher(DomainEventPublisher):
    """Publisher that also keeps every published event, in order."""

    def __init__(self) -> None:
        super().__init__()
        self.published: list[Any] = []

    async def publish(self, event: Any) -> None:
        self.published.append(event)
        await super().publish(event)

    def types(self) -> list[str]:
        return [e.event_type for e in self.published]


@pytest.fixture(autouse=True)
def _test_settings(monkeypatch: pytest.MonkeyPatch):
    """Instant steps and the memory backend for every test; cached settings reset."""
    monkeypatch.setenv("FLOWDASH_STEP_DELAY_SCALE", "0")
    monkeypatch.setenv("FLOWDASH_DATABASE_BACKEND", "memory")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None, step_delay_scale=0, database_backend="memory")


@pytest.fixture
def workflow_repo() -> InMemoryWorkflowRepository:
    return InMemoryWorkflowRepository()


@pytest.fixture
def app_repo() -> InMemoryConnectedAppRepository:
    return InMemoryConnectedAppRepository()


@pytest.fixture
def template_repo() -> InMemoryTemplateRepository:
    return InMemoryTemplateRepository()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def execution_service(
    workflow_repo, app_repo, publisher, settings
) -> WorkflowExecutionService:
    return WorkflowExecutionService(workflow_repo, app_repo, publisher, settings=settings)


@pytest.fixture
def container(settings, publisher) -> Container:
    return build_container(settings, event_publisher=publisher)


@pytest.fixture
def make_step() -> Callable[..., WorkflowStep]:
    """Build a step; app= marks it requiresApp with that appName."""

    def _make(
        step_id: str,
        step_type: str = "action",
        name: str | None = None,
        *,
        app: str | None = None,
        connections: tuple[str, ...] = (),
        **config: Any,
    ) -> WorkflowStep:
        if app is not None:
            config.update(requiresApp=True, appName=app)
        return WorkflowStep(
            id=step_id,
            type=step_type,
            name=name or step_id,
            config=config,
            connections=connections,
        )

    return _make


@pytest.fixture
def make_workflow(make_step) -> Callable[..., Workflow]:
    """Build an unsaved draft workflow; steps default to one trigger step."""

    def _make(
        steps: list[WorkflowStep] | None = None,
        *,
        user_id: UserId = OWNER,
        name: str = "Daily report",
        description: str = "Sends the daily report",
    ) -> Workflow:
        if steps is None:
            steps = [make_step("s1", "trigger", "Start")]
        workflow = Workflow.create(
            user_id=user_id,
            name=name,
            description=description,
            config=WorkflowConfig(steps=tuple(steps)),
        )
        workflow.pull_domain_events()
        return workflow

    return _make


@pytest.fixture
def save_active_workflow(workflow_repo, make_workflow):
    """Save an ACTIVE workflow with the given steps and return the stored copy."""

    async def _save(steps: list[WorkflowStep] | None = None, **kwargs: Any) -> Workflow:
        workflow = make_workflow(steps, **kwargs)
        workflow.activate()
        workflow.pull_domain_events()
        await workflow_repo.save(workflow)
        return await workflow_repo.find_by_id(workflow.id)

    return _save


@pytest.fixture
def save_app(app_repo):
    """Save a connected app for OWNER; connected=False leaves it disconnected."""

    async def _save(
        name: str,
        *,
        user_id: UserId | None = OWNER,
        connected: bool = True,
        expires_in: timedelta | None = timedelta(hours=1),
        refresh_token: str | None = "refresh",
    ) -> ConnectedApp:
        app = ConnectedApp.create(user_id, name, description=f"{name} app", icon=name.lower())
        if connected:
            app.connect(
                "access-token",
                refresh_token,
                utc_now() + expires_in if expires_in is not None else None,
            )
        app.pull_domain_events()
        await app_repo.save(app)
        return app

    return _save


@pytest.fixture
def save_template(template_repo, make_step):
    async def _save(name: str = "Sync contacts", *, users_count: int = 0, active: bool = True):
        template = Template(
            name=name,
            description=f"{name} template",
            icon_type=TemplateIconType.SHARE,
            icon_color=TemplateIconColor.INDIGO,
            config=WorkflowConfig(steps=(make_step("t1", "trigger", "Start"),)),
            users_count=users_count,
            is_active=active,
        )
        await template_repo.save(template)
        return template

    return _save


@pytest.fixture
async def db_session() -> AsyncSession:
    """Session on a fresh in-memory SQLite database. Rolls back after the test."""
    pytest.importorskip("aiosqlite")
    from flowdash.infrastructure.persistence.database import (
        Base,
        create_session_factory,
    )
    import flowdash.infrastructure.persistence.models  # noqa: F401

    engine, factory = create_session_factory(
        "sqlite+aiosqlite:///:memory:", poolclass=StaticPool
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with factory() as session:
        yield session
        await session.rollback()
    await engine.dispose()
