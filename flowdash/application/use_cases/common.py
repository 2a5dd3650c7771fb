"""Helpers shared by command and query handlers.

Handlers never let an exception escape: ``returns_operation_result`` and
``returns_query_result`` turn domain exceptions, pydantic validation errors
and unexpected failures into failure envelopes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from functools import wraps
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import ValidationError

from flowdash.application.dtos.results import (
    INTERNAL_ERROR,
    QueryResult,
    WorkflowOperationResult,
)
from flowdash.domain.exceptions import (
    AuthorizationException,
    FlowdashException,
    ResourceNotFoundException,
    ValidationException,
)
from flowdash.shared.telemetry.logging import get_logger

if TYPE_CHECKING:
    from flowdash.application.interfaces.repositories import IWorkflowRepository
    from flowdash.domain.entities import Workflow
    from flowdash.domain.value_objects import UserId, WorkflowId

logger = get_logger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"


def format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into one line: 'loc: msg; loc: msg'."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


V = TypeVar("V")


def to_id(factory: Callable[[int], V], raw: int, field: str) -> V:
    """Build an id value object, reporting a bad raw value as ValidationException."""
    try:
        return factory(raw)
    except (TypeError, ValueError) as e:
        raise ValidationException(str(e), field=field) from e


async def load_owned_workflow(
    repo: IWorkflowRepository,
    workflow_id: WorkflowId,
    user_id: UserId,
    action: str,
    *,
    not_found_message: str = "Workflow not found",
) -> Workflow:
    """Return the workflow if user_id owns it.

    Raises:
        ResourceNotFoundException: Workflow does not exist.
        AuthorizationException: Workflow belongs to another user.
    """
    workflow = await repo.find_by_id(workflow_id)
    if workflow is None:
        raise ResourceNotFoundException("workflow", workflow_id, not_found_message)
    if not workflow.belongs_to(user_id):
        raise AuthorizationException("workflow", action)
    return workflow


R = TypeVar("R")


def _wrap_errors(
    operation: str,
    on_domain: Callable[[FlowdashException], R],
    on_failure: Callable[[str, str], R],
) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> R:
            try:
                return await func(*args, **kwargs)
            except FlowdashException as e:
                logger.info("%s rejected: %s (%s)", operation, e.message, e.error_code)
                return on_domain(e)
            except ValidationError as e:
                return on_failure(format_validation_error(e), VALIDATION_ERROR)
            except Exception:
                logger.exception("%s failed", operation)
                return on_failure(f"Failed to {operation}", INTERNAL_ERROR)

        return wrapper

    return decorator


def returns_operation_result(operation: str):
    """Decorate a command handler's execute(); ``operation`` reads like 'create workflow'."""
    return _wrap_errors(
        operation,
        WorkflowOperationResult.from_exception,
        WorkflowOperationResult.failure,
    )


def returns_query_result(operation: str):
    """Decorate a query handler's execute(); ``operation`` reads like 'get workflow'."""
    return _wrap_errors(operation, QueryResult.from_exception, QueryResult.failure)
