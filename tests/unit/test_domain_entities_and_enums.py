"""Tests for domain entities (Workflow, ConnectedApp, Template) and enums."""

from datetime import UTC, datetime, timedelta

import pytest

from flowdash.domain.entities import ConnectedApp, Template, Workflow
from flowdash.domain.enums import (
    AppConnectionStatus,
    ExecutionStatus,
    StepType,
    TemplateIconColor,
    TemplateIconType,
    WorkflowStatus,
)
from flowdash.domain.exceptions import PreconditionViolationException, ValidationException
from flowdash.domain.value_objects import (
    ConnectedAppId,
    TemplateId,
    UserId,
    WorkflowConfig,
    WorkflowId,
    WorkflowStep,
)
from flowdash.shared.utils.datetime import utc_now


def _config(*step_ids: str) -> WorkflowConfig:
    return WorkflowConfig(
        steps=tuple(WorkflowStep(id=s, type="action", name=s, config={"n": 1}) for s in step_ids)
    )


def _workflow(*step_ids: str) -> Workflow:
    return Workflow.create(
        user_id=UserId(1), name="Report", description="Daily", config=_config(*step_ids)
    )


class TestWorkflowCreate:
    def test_create_is_draft_and_records_created(self) -> None:
        wf = _workflow("s1")
        assert wf.status == WorkflowStatus.DRAFT
        assert wf.is_new
        assert wf.execution_count == 0
        assert [e.event_type for e in wf.domain_events] == ["workflow.created"]

    def test_blank_name_rejected(self) -> None:
        with pytest.raises(ValidationException, match="name is required"):
            Workflow.create(user_id=UserId(1), name="  ", description="", config=_config())

    def test_update_details_rejects_blank_name(self) -> None:
        wf = _workflow("s1")
        with pytest.raises(ValidationException):
            wf.update_details("", "x")
        assert wf.name == "Report"


class TestWorkflowStateMachine:
    """draft -> active <-> paused; error from anywhere."""

    def test_activate_without_steps_fails(self) -> None:
        wf = _workflow()
        with pytest.raises(PreconditionViolationException, match="without steps"):
            wf.activate()
        assert wf.status == WorkflowStatus.DRAFT

    def test_activate_pause_activate(self) -> None:
        wf = _workflow("s1")
        wf.pull_domain_events()
        wf.activate()
        wf.pause()
        wf.activate()
        assert wf.status == WorkflowStatus.ACTIVE
        changes = [(e.old_status, e.new_status) for e in wf.pull_domain_events()]
        assert changes == [
            (WorkflowStatus.DRAFT, WorkflowStatus.ACTIVE),
            (WorkflowStatus.ACTIVE, WorkflowStatus.PAUSED),
            (WorkflowStatus.PAUSED, WorkflowStatus.ACTIVE),
        ]

    def test_pause_requires_active(self) -> None:
        wf = _workflow("s1")
        with pytest.raises(PreconditionViolationException, match="Can only pause"):
            wf.pause()

    def test_mark_as_error_keeps_counters(self) -> None:
        wf = _workflow("s1")
        wf.activate()
        wf.execute()
        wf.mark_as_error("boom")
        assert wf.status == WorkflowStatus.ERROR
        assert wf.execution_count == 1
        assert wf.domain_events[-1].reason == "boom"

    @pytest.mark.parametrize(
        "status,deletable",
        [
            (WorkflowStatus.DRAFT, True),
            (WorkflowStatus.PAUSED, True),
            (WorkflowStatus.ACTIVE, False),
            (WorkflowStatus.ERROR, False),
        ],
    )
    def test_can_be_deleted(self, status: WorkflowStatus, deletable: bool) -> None:
        wf = _workflow("s1")
        wf.status = status
        assert wf.can_be_deleted() is deletable

    def test_mark_for_deletion_of_active_fails(self) -> None:
        wf = _workflow("s1")
        wf.activate()
        with pytest.raises(PreconditionViolationException, match="Pause it first"):
            wf.mark_for_deletion()

    def test_mark_for_deletion_records_event(self) -> None:
        wf = _workflow("s1")
        wf.pull_domain_events()
        wf.mark_for_deletion()
        assert [e.event_type for e in wf.pull_domain_events()] == ["workflow.deleted"]


class TestWorkflowExecute:
    def test_execute_requires_active(self) -> None:
        wf = _workflow("s1")
        with pytest.raises(PreconditionViolationException):
            wf.execute()
        assert wf.execution_count == 0
        assert wf.last_run is None

    def test_execute_counts_and_returns_running_execution(self) -> None:
        wf = _workflow("s1")
        wf.activate()
        wf.pull_domain_events()
        execution = wf.execute("10.0.0.1")
        assert execution.status == ExecutionStatus.RUNNING
        assert execution.id.startswith("exec_")
        assert wf.execution_count == 1
        assert wf.last_run == execution.started_at
        (event,) = wf.pull_domain_events()
        assert event.event_type == "workflow.executed"
        assert event.execution_id == execution.id
        assert event.ip_address == "10.0.0.1"

    def test_each_run_gets_its_own_id(self) -> None:
        wf = _workflow("s1")
        wf.activate()
        ids = {wf.execute().id for _ in range(5)}
        assert len(ids) == 5
        assert wf.execution_count == 5


class TestWorkflowClone:
    def test_clone_is_fresh_draft_with_independent_config(self) -> None:
        wf = _workflow("s1", "s2")
        wf.activate()
        wf.execute()
        wf.mark_persisted(WorkflowId(9), 3)
        clone = wf.clone("Report (copy)")
        assert clone.id is None
        assert clone.status == WorkflowStatus.DRAFT
        assert clone.execution_count == 0
        assert clone.last_run is None
        assert clone.description == "Copy of Daily"
        assert clone.config == wf.config
        clone.config.steps[0].config["n"] = 2
        assert wf.config.steps[0].config["n"] == 1
        assert [e.event_type for e in clone.domain_events] == ["workflow.created"]


class TestIdentityStamping:
    def test_events_recorded_before_save_get_the_id(self) -> None:
        wf = _workflow("s1")
        wf.activate()
        wf.mark_persisted(WorkflowId(4), 1)
        assert [e.workflow_id for e in wf.pull_domain_events()] == [4, 4]

    def test_reassigning_another_id_fails(self) -> None:
        wf = _workflow("s1")
        wf.mark_persisted(WorkflowId(4), 1)
        with pytest.raises(ValueError, match="already has id"):
            wf.mark_persisted(WorkflowId(5), 2)

    def test_template_usage_event_gets_template_id(self) -> None:
        template = Template.create(
            "Sync", "desc", TemplateIconType.SHARE, TemplateIconColor.SKY, _config("t1")
        )
        template.mark_as_used(UserId(1), WorkflowId(3))
        template.mark_persisted(TemplateId(8), 2)
        (event,) = template.pull_domain_events()
        assert event.template_id == 8
        assert event.workflow_id == 3


class TestConnectedApp:
    def _app(self) -> ConnectedApp:
        return ConnectedApp.create(UserId(1), "Slack", description="Chat", icon="slack")

    def test_create_is_disconnected_without_token(self) -> None:
        app = self._app()
        assert app.status == AppConnectionStatus.DISCONNECTED
        assert app.access_token is None
        assert app.has_valid_token() is False
        assert app.is_usable() is False

    def test_disconnected_status_clears_token_on_construction(self) -> None:
        app = ConnectedApp(user_id=UserId(1), name="Slack", access_token="t")
        assert app.access_token is None

    def test_connect_and_disconnect(self) -> None:
        app = self._app()
        app.connect("access", "refresh", utc_now() + timedelta(hours=1))
        assert app.is_usable()
        app.disconnect()
        assert app.status == AppConnectionStatus.DISCONNECTED
        assert (app.access_token, app.refresh_token, app.token_expiry) == (None, None, None)
        assert [e.event_type for e in app.pull_domain_events()] == [
            "connected_app.connected",
            "connected_app.disconnected",
        ]

    def test_connect_requires_token(self) -> None:
        with pytest.raises(ValidationException, match="Access token"):
            self._app().connect("")

    def test_expired_token_is_not_valid(self) -> None:
        app = self._app()
        app.connect("access", None, utc_now() - timedelta(seconds=1))
        assert app.is_connected()
        assert app.has_valid_token() is False

    def test_token_without_expiry_is_valid(self) -> None:
        app = self._app()
        app.connect("access")
        assert app.has_valid_token()
        assert app.needs_token_refresh() is False

    def test_needs_refresh_within_window(self) -> None:
        app = self._app()
        now = utc_now()
        app.connect("access", "refresh", now + timedelta(minutes=3))
        assert app.needs_token_refresh(now)
        assert app.needs_token_refresh(now, window=timedelta(minutes=1)) is False

    def test_no_refresh_needed_without_refresh_token(self) -> None:
        app = self._app()
        now = utc_now()
        app.connect("access", None, now + timedelta(minutes=3))
        assert app.expires_within(now=now)
        assert app.needs_token_refresh(now) is False

    def test_naive_expiry_is_read_as_utc(self) -> None:
        app = self._app()
        app.connect("access", "refresh", datetime(2099, 1, 1, 12, 0))
        assert app.token_expiry == datetime(2099, 1, 1, 12, 0, tzinfo=UTC)
        assert app.has_valid_token()
        assert app.needs_token_refresh() is False
        assert app.to_dict()["token_expiry"] == "2099-01-01T12:00:00+00:00"

        app.refresh_access_token("new", datetime(2000, 1, 1))
        assert app.token_expiry.tzinfo is not None
        assert app.has_valid_token() is False

    def test_refresh_requires_refresh_token(self) -> None:
        app = self._app()
        app.connect("access")
        with pytest.raises(PreconditionViolationException, match="No refresh token"):
            app.refresh_access_token("new")

    def test_refresh_replaces_token(self) -> None:
        app = self._app()
        app.connect("access", "refresh")
        expiry = utc_now() + timedelta(hours=2)
        app.refresh_access_token("new", expiry)
        assert app.access_token == "new"
        assert app.token_expiry == expiry

    def test_link_requires_connection(self) -> None:
        app = self._app()
        with pytest.raises(PreconditionViolationException, match="Cannot link"):
            app.link_to_workflow(WorkflowId(1))
        app.connect("access")
        app.mark_persisted(ConnectedAppId(2), 1)
        app.pull_domain_events()
        app.link_to_workflow(WorkflowId(1))
        (event,) = app.pull_domain_events()
        assert (event.app_id, event.workflow_id) == (2, 1)

    def test_to_dict_has_no_secrets(self) -> None:
        app = self._app()
        app.connect("access", "refresh")
        data = app.to_dict()
        assert "access_token" not in data
        assert "refresh_token" not in data
        assert data["has_valid_token"] is True


class TestTemplate:
    def test_negative_users_count_rejected(self) -> None:
        with pytest.raises(ValidationException, match="negative"):
            Template(
                name="x",
                description="",
                icon_type=TemplateIconType.MAIL,
                icon_color=TemplateIconColor.ROSE,
                config=WorkflowConfig(),
                users_count=-1,
            )

    def test_popular_threshold_and_deletion(self) -> None:
        template = Template.create(
            "Sync", "", TemplateIconType.DATA, TemplateIconColor.GREEN, WorkflowConfig()
        )
        assert template.can_be_deleted()
        template.users_count = 99
        assert template.is_popular() is False
        template.mark_as_used(UserId(1), None)
        assert template.is_popular()
        assert template.can_be_deleted() is False


class TestEnums:
    def test_values(self) -> None:
        assert WorkflowStatus.values() == ["draft", "active", "paused", "error"]
        assert AppConnectionStatus.values() == ["connected", "disconnected", "error"]
        assert StepType.values() == ["trigger", "action", "condition", "transform"]
        assert "automation" in TemplateIconType.values()
        assert len(TemplateIconColor.values()) == 8

    def test_str_enum_compares_to_value(self) -> None:
        assert WorkflowStatus.ACTIVE == "active"
