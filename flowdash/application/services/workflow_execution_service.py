"""Workflow execution pipeline: run a workflow's steps in order and record the outcome."""

from __future__ import annotations

import asyncio
import traceback
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from flowdash.application.dtos.results import (
    INTERNAL_ERROR,
    ExecutionResult,
    ValidationResult,
)
from flowdash.application.interfaces.services import StepContext
from flowdash.application.services.retry import RetryPolicy
from flowdash.application.services.step_executors import default_step_executors
from flowdash.core.config import Settings, get_settings
from flowdash.domain.enums import LogLevel
from flowdash.domain.exceptions import (
    AuthorizationException,
    ExecutionCancelledException,
    ExecutionTimeoutException,
    PreconditionViolationException,
    ResourceNotFoundException,
    StepExecutionException,
)
from flowdash.domain.value_objects import UserId, WorkflowExecutionLog, WorkflowId
from flowdash.shared.telemetry.logging import get_logger
from flowdash.shared.telemetry.tracing import (
    add_span_attributes,
    add_span_event,
    set_span_error,
    traced,
)
from flowdash.shared.utils.datetime import elapsed_ms, utc_now

if TYPE_CHECKING:
    from flowdash.application.interfaces.repositories import (
        IConnectedAppRepository,
        IWorkflowRepository,
    )
    from flowdash.application.interfaces.services import (
        IDomainEventPublisher,
        IStepExecutor,
    )
    from flowdash.domain.entities import ConnectedApp, Workflow
    from flowdash.domain.value_objects import WorkflowStep

logger = get_logger(__name__)

_UNSET: Any = object()


def _log(
    logs: list[WorkflowExecutionLog],
    step_id: str,
    level: LogLevel,
    message: str,
    data: dict[str, Any] | None = None,
) -> None:
    logs.append(WorkflowExecutionLog(step_id=step_id, level=level, message=message, data=data))


class WorkflowExecutionService:
    """Runs workflows and validates their configuration.

    Steps are dispatched to the executor registered for their type, strictly
    in list order. Any fault aborts the remaining steps, fails the execution
    and moves the workflow to ERROR. The workflow is persisted and its domain
    events published once per run, after the outcome is known.
    """

    def __init__(
        self,
        workflow_repo: IWorkflowRepository,
        connected_app_repo: IConnectedAppRepository,
        event_publisher: IDomainEventPublisher,
        *,
        step_executors: dict[str, IStepExecutor] | None = None,
        retry_policy: RetryPolicy | None = None,
        settings: Settings | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._workflow_repo = workflow_repo
        self._connected_app_repo = connected_app_repo
        self._event_publisher = event_publisher
        self._step_executors = (
            step_executors
            if step_executors is not None
            else default_step_executors(self._settings.step_delay_scale)
        )
        self._retry_policy = retry_policy or RetryPolicy.from_settings(self._settings)

    def register_executor(self, step_type: str, executor: IStepExecutor) -> None:
        """Add or replace the executor for a step type."""
        self._step_executors[step_type] = executor

    @traced("workflow.execute")
    async def execute_workflow(
        self,
        workflow_id: WorkflowId,
        user_id: UserId,
        ip_address: str | None = None,
        *,
        timeout: float | None = _UNSET,
        cancel_event: asyncio.Event | None = None,
    ) -> ExecutionResult:
        """Run an active workflow owned by user_id.

        Args:
            workflow_id: Workflow to run.
            user_id: Requesting user; must own the workflow.
            ip_address: Caller address recorded on the WorkflowExecuted event.
            timeout: Whole-run deadline in seconds. Omitted means
                settings.execution_timeout_seconds; None disables the deadline.
            cancel_event: Checked before each step; once set the run fails.

        Returns:
            ExecutionResult. ``execution`` is None when a required app was
            unavailable and the run never started.

        Raises:
            ResourceNotFoundException: Workflow does not exist.
            AuthorizationException: Workflow belongs to another user.
            PreconditionViolationException: Workflow is not active.
        """
        if timeout is _UNSET:
            timeout = self._settings.execution_timeout_seconds

        workflow = await self._workflow_repo.find_by_id(workflow_id)
        if workflow is None:
            raise ResourceNotFoundException("workflow", workflow_id, "Workflow not found")
        if not workflow.belongs_to(user_id):
            raise AuthorizationException("workflow", "execute")
        if not workflow.is_active():
            raise PreconditionViolationException(
                "Cannot execute inactive workflow",
                workflow_id=workflow_id.value,
                status=workflow.status.value,
            )

        connected_apps = await self._connected_app_repo.find_by_user_id(user_id)
        logs: list[WorkflowExecutionLog] = []

        unavailable = self._check_required_apps(workflow, connected_apps, logs)
        if unavailable is not None:
            logger.warning(
                "Workflow %s not started: %s (user_id=%s)",
                workflow_id,
                unavailable,
                user_id,
            )
            workflow.mark_as_error(unavailable)
            await self._persist(workflow)
            return ExecutionResult(
                execution=None,
                success=False,
                error_message=unavailable,
                error_code="DEPENDENCY_UNAVAILABLE",
                logs=logs,
            )

        execution = workflow.execute(ip_address)
        add_span_attributes(execution_id=execution.id, step_count=len(workflow.config.steps))
        context = StepContext(
            workflow=workflow,
            connected_apps=connected_apps,
            user_id=user_id,
            execution_id=execution.id,
            ip_address=ip_address,
        )

        error_message: str | None = None
        error_code: str | None = None
        try:
            try:
                async with asyncio.timeout(timeout):
                    await self._run_steps(context, logs, cancel_event)
            except TimeoutError:
                raise ExecutionTimeoutException(timeout) from None
        except StepExecutionException as e:
            # Step log already written.
            error_message, error_code = e.message, e.error_code
        except (ExecutionTimeoutException, ExecutionCancelledException) as e:
            error_message, error_code = e.message, e.error_code
            _log(logs, "execution", LogLevel.ERROR, e.message, {"error_code": e.error_code})
        except Exception as e:
            logger.exception(
                "Workflow %s execution %s failed unexpectedly", workflow_id, execution.id
            )
            set_span_error(e)
            error_message = str(e) or "Unknown execution error"
            error_code = INTERNAL_ERROR
            _log(
                logs,
                "execution",
                LogLevel.ERROR,
                error_message,
                {"error": traceback.format_exc()},
            )

        if error_message is None:
            _log(
                logs,
                "completion",
                LogLevel.INFO,
                "Workflow execution completed successfully",
                {"execution_id": execution.id, "step_count": len(workflow.config.steps)},
            )
            execution.complete(logs)
        else:
            execution.fail(logs)
            workflow.mark_as_error(error_message)
            add_span_event("workflow.execution_failed", {"error": error_message})

        await self._persist(workflow)
        logger.info(
            "Workflow %s execution %s finished with status %s",
            workflow_id,
            execution.id,
            execution.status.value,
        )
        return ExecutionResult(
            execution=execution,
            success=error_message is None,
            error_message=error_message,
            error_code=error_code,
            logs=list(logs),
        )

    @traced("workflow.validate")
    async def validate_workflow(self, workflow_id: WorkflowId) -> ValidationResult:
        """Check a workflow's configuration without changing anything."""
        workflow = await self._workflow_repo.find_by_id(workflow_id)
        if workflow is None:
            return ValidationResult(is_valid=False, errors=["Workflow not found"])

        errors: list[str] = []
        config = workflow.config
        if not config.has_steps():
            errors.append("Workflow must have at least one step")

        step_ids = config.step_ids()
        for step in config.steps:
            for target in step.connections:
                if target not in step_ids:
                    errors.append(f"Step {step.name} references non-existent step {target}")

        apps = await self._connected_app_repo.find_by_user_id(workflow.user_id)
        connected_names = {app.name for app in apps if app.is_connected()}
        for step in config.steps:
            if step.requires_app and step.app_name not in connected_names:
                errors.append(
                    f"Step {step.name} requires app {step.app_name} which is not connected"
                )

        return ValidationResult(is_valid=not errors, errors=errors)

    def _check_required_apps(
        self,
        workflow: Workflow,
        connected_apps: list[ConnectedApp],
        logs: list[WorkflowExecutionLog],
    ) -> str | None:
        """Return the first unavailable-app message, or None when every required app is usable."""
        now = utc_now()
        window = timedelta(seconds=self._settings.token_refresh_window_seconds)
        for step in workflow.config.steps:
            if not step.requires_app:
                continue
            app = next((a for a in connected_apps if a.name == step.app_name), None)
            data = {"step_name": step.name, "required_app": step.app_name}
            if app is None or not app.is_connected():
                message = f"Required app {step.app_name} is not connected"
            elif not app.is_usable(now):
                message = f"Required app {step.app_name} has no valid access token"
            else:
                if app.expires_within(window, now):
                    _log(
                        logs,
                        step.id,
                        LogLevel.WARN,
                        f"Access token for app {step.app_name} expires soon",
                        {
                            **data,
                            "token_expiry": app.token_expiry.isoformat(),
                            "refreshable": app.needs_token_refresh(now, window),
                        },
                    )
                continue
            _log(logs, step.id, LogLevel.ERROR, message, data)
            return message
        return None

    async def _run_steps(
        self,
        context: StepContext,
        logs: list[WorkflowExecutionLog],
        cancel_event: asyncio.Event | None,
    ) -> None:
        for step in context.workflow.config.steps:
            if cancel_event is not None and cancel_event.is_set():
                raise ExecutionCancelledException()
            await self._run_step(step, context, logs)

    async def _run_step(
        self,
        step: WorkflowStep,
        context: StepContext,
        logs: list[WorkflowExecutionLog],
    ) -> None:
        started_at = utc_now()
        _log(
            logs,
            step.id,
            LogLevel.INFO,
            f"Starting step: {step.name}",
            {"step_type": step.type, "step_config": step.config},
        )
        try:
            output = await self._dispatch_with_retry(step, context, logs)
        except Exception as e:
            message = e.message if isinstance(e, StepExecutionException) else str(e)
            message = message or "Step execution failed"
            _log(
                logs,
                step.id,
                LogLevel.ERROR,
                f"Step failed: {step.name} - {message}",
                {
                    "step_type": step.type,
                    "error": traceback.format_exc(),
                    "duration_ms": elapsed_ms(started_at),
                },
            )
            raise StepExecutionException(step.id, step.name, message) from e

        context.outputs[step.id] = output
        _log(
            logs,
            step.id,
            LogLevel.INFO,
            f"Step completed: {step.name}",
            {"step_type": step.type, "duration_ms": elapsed_ms(started_at), "output": output},
        )

    async def _dispatch_with_retry(
        self,
        step: WorkflowStep,
        context: StepContext,
        logs: list[WorkflowExecutionLog],
    ) -> dict[str, Any] | None:
        executor = self._step_executors.get(step.type)
        if executor is None:
            raise StepExecutionException(step.id, step.name, f"Unknown step type: {step.type}")

        attempt = 1
        while True:
            try:
                return await executor.execute(step, context)
            except Exception as e:
                if not self._retry_policy.should_retry(attempt, e):
                    raise
                delay = self._retry_policy.delay_for(attempt)
                _log(
                    logs,
                    step.id,
                    LogLevel.WARN,
                    f"Step attempt {attempt} failed: {step.name} - {e}",
                    {"attempt": attempt, "retry_in_seconds": delay},
                )
                if delay > 0:
                    await asyncio.sleep(delay)
                attempt += 1

    async def _persist(self, workflow: Workflow) -> None:
        await self._workflow_repo.update(workflow)
        await self._event_publisher.publish_many(workflow.pull_domain_events())
