"""Domain exceptions for flowdash.

Defines domain-level exceptions that represent business rule violations.
These exceptions are independent of infrastructure concerns. Command and
query handlers map them to failure envelopes using error_code.
"""

from typing import Any


class FlowdashException(Exception):
    """Base exception for all flowdash errors.

    All custom exceptions inherit from this class so handlers can convert
    them uniformly into result envelopes.

    Attributes:
        message: Human-readable error description.
        error_code: Machine-readable error code.
        details: Additional error context (e.g. field, resource_id).
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Optional machine-readable code; defaults to class name.
            details: Optional dict of extra context.
        """
        self.message = message
        self.error_code = error_code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)


class ValidationException(FlowdashException):
    """Raised when input validation fails (e.g. blank name, malformed id)."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize with message and optional field name.

        Args:
            message: Description of the validation failure.
            field: Optional field or attribute that failed validation.
        """
        details = {"field": field} if field else {}
        super().__init__(message, "VALIDATION_ERROR", details)


class ResourceNotFoundException(FlowdashException):
    """Raised when a referenced workflow, app or template does not exist."""

    def __init__(
        self, resource_type: str, resource_id: object, message: str | None = None
    ) -> None:
        """Initialize with resource type and id.

        Args:
            resource_type: Type of resource (e.g. 'workflow', 'connected_app').
            resource_id: The ID that was not found.
            message: Optional override for the human-readable message.
        """
        super().__init__(
            message or f"{resource_type} not found: {resource_id}",
            "RESOURCE_NOT_FOUND",
            {"resource_type": resource_type, "resource_id": str(resource_id)},
        )


class AuthorizationException(FlowdashException):
    """Raised when the requesting user does not own the aggregate."""

    def __init__(
        self,
        resource: str | None = None,
        action: str | None = None,
        message: str = "Unauthorized",
    ) -> None:
        """Initialize with optional resource, action, and message.

        Args:
            resource: Optional resource type (e.g. 'workflow').
            action: Optional action that was attempted (e.g. 'execute').
            message: Human-readable message; default used when resource/action omitted.
        """
        if resource and action:
            message = f"Unauthorized to {action} this {resource}"
        details: dict[str, Any] = {}
        if resource:
            details["resource"] = resource
        if action:
            details["action"] = action
        super().__init__(message, "UNAUTHORIZED", details)


class PreconditionViolationException(FlowdashException):
    """Raised by an aggregate when a state transition is not allowed."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message, "PRECONDITION_VIOLATION", details)


class DependencyUnavailableException(FlowdashException):
    """Raised when a step's required connected app is missing, disconnected or unauthenticated."""

    def __init__(self, message: str, app_name: str | None, step_id: str | None = None) -> None:
        """Initialize with message and dependency context.

        Args:
            message: Human-readable description.
            app_name: Name of the required app as written in the step config.
            step_id: Step that declared the dependency, when known.
        """
        details: dict[str, Any] = {"app_name": app_name}
        if step_id is not None:
            details["step_id"] = step_id
        super().__init__(message, "DEPENDENCY_UNAVAILABLE", details)


class StepExecutionException(FlowdashException):
    """Raised when a step dispatch fails (wraps the executor's own error)."""

    def __init__(self, step_id: str, step_name: str, message: str) -> None:
        super().__init__(
            message,
            "STEP_EXECUTION_FAULT",
            {"step_id": step_id, "step_name": step_name},
        )


class ExecutionTimeoutException(FlowdashException):
    """Raised when a run exceeds its deadline."""

    def __init__(self, timeout_seconds: float) -> None:
        super().__init__(
            f"Workflow execution timed out after {timeout_seconds:g}s",
            "EXECUTION_TIMEOUT",
            {"timeout_seconds": timeout_seconds},
        )


class ExecutionCancelledException(FlowdashException):
    """Raised when a run is cancelled by its caller."""

    def __init__(self) -> None:
        super().__init__("Workflow execution was cancelled", "EXECUTION_CANCELLED")


class ConcurrencyConflictException(FlowdashException):
    """Raised when an update loses an optimistic-lock race (stale version)."""

    def __init__(self, resource_type: str, resource_id: object, expected_version: int) -> None:
        super().__init__(
            f"{resource_type} {resource_id} was modified by another request; reload and retry.",
            "CONCURRENCY_CONFLICT",
            {
                "resource_type": resource_type,
                "resource_id": str(resource_id),
                "expected_version": expected_version,
            },
        )
