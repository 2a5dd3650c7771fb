"""Tests for WorkflowExecutionService (run pipeline, logs, outcome, validation)."""

import asyncio
from datetime import datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from flowdash.application.interfaces.services import StepContext
from flowdash.application.services import (
    ActionStepExecutor,
    RetryPolicy,
    WorkflowExecutionService,
)
from flowdash.domain.entities import ConnectedApp
from flowdash.domain.enums import ExecutionStatus, LogLevel, WorkflowStatus
from flowdash.domain.exceptions import (
    AuthorizationException,
    DependencyUnavailableException,
    PreconditionViolationException,
    ResourceNotFoundException,
)
from flowdash.domain.value_objects import WorkflowId

from tests.conftest import OTHER_USER, OWNER


def _messages(result) -> list[str]:
    return [log.message for log in result.logs]


class TestSuccessfulRun:
    async def test_every_step_logged_in_order(
        self, execution_service, save_active_workflow, save_app, make_step, workflow_repo
    ) -> None:
        await save_app("Slack")
        workflow = await save_active_workflow(
            [
                make_step("s1", "trigger", "Start"),
                make_step("s2", "condition", "Check"),
                make_step("s3", "transform", "Shape"),
                make_step("s4", "action", "Post", app="Slack"),
            ]
        )

        result = await execution_service.execute_workflow(workflow.id, OWNER, "127.0.0.1")

        assert result.success is True
        assert result.error_message is None
        assert result.execution.status == ExecutionStatus.COMPLETED
        assert result.execution.completed_at is not None
        assert _messages(result) == [
            "Starting step: Start",
            "Step completed: Start",
            "Starting step: Check",
            "Step completed: Check",
            "Starting step: Shape",
            "Step completed: Shape",
            "Starting step: Post",
            "Step completed: Post",
            "Workflow execution completed successfully",
        ]
        assert result.logs[-1].step_id == "completion"
        assert result.logs[-1].data["step_count"] == 4
        assert result.logs[7].data["output"] == {"action": "Post", "app": "Slack"}
        assert "duration_ms" in result.logs[1].data

        stored = await workflow_repo.find_by_id(workflow.id)
        assert stored.status == WorkflowStatus.ACTIVE
        assert stored.execution_count == 1
        assert stored.last_run == result.execution.started_at

    async def test_publishes_executed_event_after_persisting(
        self, execution_service, save_active_workflow, publisher
    ) -> None:
        workflow = await save_active_workflow()
        result = await execution_service.execute_workflow(workflow.id, OWNER, "10.1.1.1")
        assert publisher.types() == ["workflow.executed"]
        event = publisher.published[0]
        assert event.workflow_id == workflow.id.value
        assert event.execution_id == result.execution.id
        assert event.ip_address == "10.1.1.1"

    async def test_expiring_token_adds_warning_but_runs(
        self, execution_service, save_active_workflow, save_app, make_step
    ) -> None:
        await save_app("Slack", expires_in=timedelta(minutes=2))
        workflow = await save_active_workflow([make_step("s1", app="Slack", name="Post")])

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.success is True
        assert result.logs[0].level == LogLevel.WARN
        assert result.logs[0].message == "Access token for app Slack expires soon"
        assert result.logs[0].data["refreshable"] is True

    async def test_expiring_token_without_refresh_token_still_warns(
        self, execution_service, save_active_workflow, save_app, make_step
    ) -> None:
        await save_app("Slack", expires_in=timedelta(minutes=2), refresh_token=None)
        workflow = await save_active_workflow([make_step("s1", app="Slack", name="Post")])

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.success is True
        assert result.logs[0].level == LogLevel.WARN
        assert result.logs[0].data["refreshable"] is False


class TestStepFailure:
    async def test_unknown_step_type_fails_run_and_skips_rest(
        self, execution_service, save_active_workflow, make_step, workflow_repo
    ) -> None:
        workflow = await save_active_workflow(
            [
                make_step("s1", "trigger", "Start"),
                make_step("s2", "webhook", "Hook"),
                make_step("s3", "transform", "Never"),
            ]
        )

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.success is False
        assert result.error_message == "Unknown step type: webhook"
        assert result.error_code == "STEP_EXECUTION_FAULT"
        assert result.execution.status == ExecutionStatus.FAILED
        assert _messages(result) == [
            "Starting step: Start",
            "Step completed: Start",
            "Starting step: Hook",
            "Step failed: Hook - Unknown step type: webhook",
        ]
        assert result.logs[-1].level == LogLevel.ERROR
        assert result.logs[-1].step_id == "s2"

        stored = await workflow_repo.find_by_id(workflow.id)
        assert stored.status == WorkflowStatus.ERROR
        assert stored.execution_count == 1

    async def test_executor_error_message_is_reported(
        self, execution_service, save_active_workflow, make_step, publisher
    ) -> None:
        failing = AsyncMock()
        failing.execute.side_effect = RuntimeError("upstream returned 502")
        execution_service.register_executor("http", failing)
        workflow = await save_active_workflow([make_step("s1", "http", "Call API")])

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.success is False
        assert result.error_message == "upstream returned 502"
        assert result.logs[-1].message == "Step failed: Call API - upstream returned 502"
        assert "RuntimeError" in result.logs[-1].data["error"]
        assert publisher.types() == ["workflow.executed", "workflow.status_changed"]
        assert publisher.published[-1].new_status == WorkflowStatus.ERROR

    async def test_custom_executor_receives_earlier_outputs(
        self, execution_service, save_active_workflow, make_step
    ) -> None:
        seen: dict = {}

        class Collect:
            async def execute(self, step, context: StepContext):
                seen.update(context.outputs)
                return None

        execution_service.register_executor("collect", Collect())
        workflow = await save_active_workflow(
            [make_step("s1", "trigger"), make_step("s2", "collect")]
        )

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.success is True
        assert seen == {"s1": {"triggered": True}}


class TestRetry:
    async def test_flaky_step_succeeds_on_second_attempt(
        self, workflow_repo, app_repo, publisher, settings, save_active_workflow, make_step
    ) -> None:
        flaky = AsyncMock()
        flaky.execute.side_effect = [RuntimeError("flaky"), {"ok": True}]
        service = WorkflowExecutionService(
            workflow_repo,
            app_repo,
            publisher,
            retry_policy=RetryPolicy(max_attempts=2),
            settings=settings,
        )
        service.register_executor("flaky", flaky)
        workflow = await save_active_workflow([make_step("s1", "flaky", "Flaky")])

        result = await service.execute_workflow(workflow.id, OWNER)

        assert result.success is True
        assert flaky.execute.await_count == 2
        warn = [log for log in result.logs if log.level == LogLevel.WARN]
        assert [log.message for log in warn] == ["Step attempt 1 failed: Flaky - flaky"]

    async def test_no_retry_by_default(
        self, execution_service, save_active_workflow, make_step
    ) -> None:
        flaky = AsyncMock()
        flaky.execute.side_effect = [RuntimeError("flaky"), {"ok": True}]
        execution_service.register_executor("flaky", flaky)
        workflow = await save_active_workflow([make_step("s1", "flaky")])

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.success is False
        assert flaky.execute.await_count == 1


class TestTimeoutAndCancellation:
    async def test_deadline_fails_run(
        self, execution_service, save_active_workflow, make_step, workflow_repo
    ) -> None:
        class Slow:
            async def execute(self, step, context):
                await asyncio.sleep(5)

        execution_service.register_executor("slow", Slow())
        workflow = await save_active_workflow([make_step("s1", "slow", "Slow")])

        result = await execution_service.execute_workflow(workflow.id, OWNER, timeout=0.05)

        assert result.success is False
        assert result.error_code == "EXECUTION_TIMEOUT"
        assert result.error_message == "Workflow execution timed out after 0.05s"
        assert result.logs[-1].step_id == "execution"
        assert result.execution.status == ExecutionStatus.FAILED
        stored = await workflow_repo.find_by_id(workflow.id)
        assert stored.status == WorkflowStatus.ERROR

    async def test_cancel_before_first_step(
        self, execution_service, save_active_workflow
    ) -> None:
        workflow = await save_active_workflow()
        cancel = asyncio.Event()
        cancel.set()

        result = await execution_service.execute_workflow(
            workflow.id, OWNER, cancel_event=cancel
        )

        assert result.success is False
        assert result.error_code == "EXECUTION_CANCELLED"
        assert _messages(result) == ["Workflow execution was cancelled"]


class TestPreconditions:
    async def test_missing_workflow(self, execution_service) -> None:
        with pytest.raises(ResourceNotFoundException, match="Workflow not found"):
            await execution_service.execute_workflow(WorkflowId(999), OWNER)

    async def test_other_users_workflow(self, execution_service, save_active_workflow) -> None:
        workflow = await save_active_workflow()
        with pytest.raises(AuthorizationException):
            await execution_service.execute_workflow(workflow.id, OTHER_USER)

    async def test_inactive_workflow(
        self, execution_service, make_workflow, workflow_repo
    ) -> None:
        workflow = make_workflow()
        await workflow_repo.save(workflow)
        with pytest.raises(
            PreconditionViolationException, match="Cannot execute inactive workflow"
        ):
            await execution_service.execute_workflow(workflow.id, OWNER)
        stored = await workflow_repo.find_by_id(workflow.id)
        assert stored.execution_count == 0

    async def test_required_app_not_connected_never_starts_run(
        self, execution_service, save_active_workflow, save_app, make_step, workflow_repo
    ) -> None:
        await save_app("Slack", connected=False)
        workflow = await save_active_workflow(
            [make_step("s1", "trigger"), make_step("s2", app="Slack", name="Post")]
        )

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.success is False
        assert result.execution is None
        assert result.error_code == "DEPENDENCY_UNAVAILABLE"
        assert result.error_message == "Required app Slack is not connected"
        assert result.logs[0].step_id == "s2"
        stored = await workflow_repo.find_by_id(workflow.id)
        assert stored.status == WorkflowStatus.ERROR
        assert stored.execution_count == 0
        assert stored.last_run is None

    async def test_required_app_of_other_user_does_not_count(
        self, execution_service, save_active_workflow, save_app, make_step
    ) -> None:
        await save_app("Slack", user_id=OTHER_USER)
        workflow = await save_active_workflow([make_step("s1", app="Slack")])

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.execution is None
        assert result.error_message == "Required app Slack is not connected"

    async def test_expired_token_never_starts_run(
        self, execution_service, save_active_workflow, save_app, make_step
    ) -> None:
        await save_app("Slack", expires_in=timedelta(minutes=-1))
        workflow = await save_active_workflow([make_step("s1", app="Slack")])

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.execution is None
        assert result.error_message == "Required app Slack has no valid access token"

    async def test_status_change_published_after_update(
        self,
        execution_service,
        save_active_workflow,
        make_step,
        workflow_repo,
        publisher,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        workflow = await save_active_workflow([make_step("s1", app="Slack")])
        published_before_update: list[list[str]] = []
        update = workflow_repo.update

        async def recording_update(wf):
            published_before_update.append(publisher.types())
            await update(wf)

        monkeypatch.setattr(workflow_repo, "update", recording_update)

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.execution is None
        assert published_before_update == [[]]
        assert publisher.types() == ["workflow.status_changed"]
        assert publisher.published[0].new_status == WorkflowStatus.ERROR

    async def test_naive_token_expiry_does_not_break_run(
        self, execution_service, save_active_workflow, make_step, app_repo
    ) -> None:
        app = ConnectedApp.create(OWNER, "Slack")
        app.connect("access-token", "refresh", datetime(2099, 1, 1, 12, 0))
        await app_repo.save(app)
        workflow = await save_active_workflow([make_step("s1", app="Slack", name="Post")])

        result = await execution_service.execute_workflow(workflow.id, OWNER)

        assert result.success is True, result.error_message


class TestActionStepExecutor:
    async def test_unauthenticated_app_raises(self, make_workflow, make_step) -> None:
        step = make_step("s1", app="Slack")
        context = StepContext(
            workflow=make_workflow([step]),
            connected_apps=[],
            user_id=OWNER,
            execution_id="exec_1_x",
        )
        with pytest.raises(
            DependencyUnavailableException, match="App Slack authentication failed"
        ):
            await ActionStepExecutor(delay_scale=0).execute(step, context)

    async def test_action_without_app(self, make_workflow, make_step) -> None:
        step = make_step("s1", name="Notify", action="email")
        context = StepContext(
            workflow=make_workflow([step]),
            connected_apps=[],
            user_id=OWNER,
            execution_id="exec_1_x",
        )
        assert await ActionStepExecutor(delay_scale=0).execute(step, context) == {
            "action": "email"
        }


class TestValidateWorkflow:
    async def test_valid(self, execution_service, save_active_workflow, save_app, make_step) -> None:
        await save_app("Slack")
        workflow = await save_active_workflow(
            [make_step("s1", "trigger", connections=("s2",)), make_step("s2", app="Slack")]
        )
        result = await execution_service.validate_workflow(workflow.id)
        assert result.is_valid is True
        assert result.errors == []

    async def test_missing_workflow(self, execution_service) -> None:
        result = await execution_service.validate_workflow(WorkflowId(404))
        assert result.is_valid is False
        assert result.errors == ["Workflow not found"]

    async def test_collects_every_problem(
        self, execution_service, make_workflow, make_step, workflow_repo
    ) -> None:
        workflow = make_workflow(
            [
                make_step("s1", "trigger", "Start", connections=("ghost",)),
                make_step("s2", "action", "Post", app="Slack"),
            ]
        )
        await workflow_repo.save(workflow)

        result = await execution_service.validate_workflow(workflow.id)

        assert result.is_valid is False
        assert result.errors == [
            "Step Start references non-existent step ghost",
            "Step Post requires app Slack which is not connected",
        ]

    async def test_no_steps(self, execution_service, make_workflow, workflow_repo) -> None:
        workflow = make_workflow([])
        await workflow_repo.save(workflow)
        result = await execution_service.validate_workflow(workflow.id)
        assert result.errors == ["Workflow must have at least one step"]
