"""Command DTOs: one immutable request per mutating use case.

Ids arrive as plain ints from the calling layer; handlers wrap them in
value objects. ``config`` payloads are raw mappings validated by the
handlers against flowdash.schemas.workflow.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class CreateWorkflowCommand:
    user_id: int
    name: str
    description: str
    config: dict[str, Any]
    icon: str | None = None
    icon_color: str | None = None


@dataclass(frozen=True)
class UpdateWorkflowCommand:
    """Partial update: None means leave unchanged."""

    workflow_id: int
    user_id: int
    name: str | None = None
    description: str | None = None
    config: dict[str, Any] | None = None
    icon: str | None = None
    icon_color: str | None = None


@dataclass(frozen=True)
class ActivateWorkflowCommand:
    workflow_id: int
    user_id: int


@dataclass(frozen=True)
class PauseWorkflowCommand:
    workflow_id: int
    user_id: int


@dataclass(frozen=True)
class ExecuteWorkflowCommand:
    workflow_id: int
    user_id: int
    ip_address: str | None = None
    # Seconds; None falls back to settings.execution_timeout_seconds.
    timeout: float | None = None


@dataclass(frozen=True)
class DeleteWorkflowCommand:
    workflow_id: int
    user_id: int


@dataclass(frozen=True)
class CloneWorkflowCommand:
    workflow_id: int
    user_id: int
    new_name: str


@dataclass(frozen=True)
class CreateFromTemplateCommand:
    template_id: int
    user_id: int
    workflow_name: str


@dataclass(frozen=True)
class ConnectAppCommand:
    user_id: int
    app_name: str
    access_token: str
    refresh_token: str | None = None
    token_expiry: datetime | None = None


@dataclass(frozen=True)
class DisconnectAppCommand:
    app_id: int
    user_id: int
