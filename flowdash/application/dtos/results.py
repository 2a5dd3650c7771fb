"""Result envelopes returned to the calling layer (e.g. an HTTP controller)."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from flowdash.domain.exceptions import FlowdashException
from flowdash.domain.value_objects import WorkflowExecution, WorkflowExecutionLog

INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class WorkflowOperationResult:
    """Uniform command envelope: success flag plus the id the command produced."""

    success: bool
    error_message: str | None = None
    error_code: str | None = None
    workflow_id: int | None = None
    execution_id: str | None = None
    app_id: int | None = None

    @classmethod
    def ok(cls, **ids: Any) -> "WorkflowOperationResult":
        return cls(success=True, **ids)

    @classmethod
    def failure(cls, message: str, error_code: str = INTERNAL_ERROR) -> "WorkflowOperationResult":
        return cls(success=False, error_message=message, error_code=error_code)

    @classmethod
    def from_exception(cls, exc: FlowdashException) -> "WorkflowOperationResult":
        return cls(success=False, error_message=exc.message, error_code=exc.error_code)

T = TypeVar("T")


@dataclass(frozen=True)
class QueryResult(Generic[T]):
    """Uniform query envelope; data is None whenever success is False."""

    success: bool
    data: T | None = None
    error_message: str | None = None
    error_code: str | None = None

    @classmethod
    def ok(cls, data: T) -> "QueryResult[T]":
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, message: str, error_code: str = INTERNAL_ERROR) -> "QueryResult[T]":
        return cls(success=False, error_message=message, error_code=error_code)

    @classmethod
    def from_exception(cls, exc: FlowdashException) -> "QueryResult[T]":
        return cls(success=False, error_message=exc.message, error_code=exc.error_code)


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of one execute_workflow call.

    ``execution`` is None when the run never started (a required app was
    unavailable during the precondition pass).
    """

    execution: WorkflowExecution | None
    success: bool
    error_message: str | None = None
    error_code: str | None = None
    logs: list[WorkflowExecutionLog] = field(default_factory=list)


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class WorkflowStatsResult:
    total_workflows: int
    active_workflows: int
    paused_workflows: int
    error_workflows: int
    connected_apps: int
    templates_used: int
    execution_count: int
    average_executions_per_workflow: float
