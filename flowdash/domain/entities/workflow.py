"""Workflow aggregate root.

A workflow is an ordered list of steps owned by one user. Its lifecycle is
a small state machine:

    draft --activate--> active --pause--> paused --activate--> active
    any   --mark_as_error--> error

Deletion is allowed only from draft or paused; the aggregate records a
WorkflowDeleted event and the repository performs the removal.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flowdash.domain.enums import WorkflowStatus
from flowdash.domain.events import (
    EventRecorder,
    WorkflowCreated,
    WorkflowDeleted,
    WorkflowExecuted,
    WorkflowStatusChanged,
)
from flowdash.domain.exceptions import (
    PreconditionViolationException,
    ValidationException,
)
from flowdash.domain.value_objects.core import TemplateId, UserId, WorkflowId
from flowdash.domain.value_objects.workflow import WorkflowConfig, WorkflowExecution
from flowdash.shared.utils.datetime import utc_now
from flowdash.shared.utils.generators import generate_execution_id

_DELETABLE_STATUSES = frozenset({WorkflowStatus.DRAFT, WorkflowStatus.PAUSED})


@dataclass(eq=False)
class Workflow(EventRecorder):
    """Domain aggregate for a workflow (lifecycle, configuration, execution bookkeeping).

    ``id`` is None until the repository assigns one on first save.
    ``version`` is the optimistic concurrency token maintained by repositories.
    """

    user_id: UserId
    name: str
    description: str
    config: WorkflowConfig
    status: WorkflowStatus = WorkflowStatus.DRAFT
    id: WorkflowId | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    last_run: datetime | None = None
    execution_count: int = 0
    icon: str | None = None
    icon_color: str | None = None
    # Template this workflow was created from, if any.
    template_id: TemplateId | None = None
    version: int = 0

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Validate workflow business rules. Raises ValidationException if invalid."""
        if not self.name or not self.name.strip():
            raise ValidationException("Workflow name is required", field="name")
        if self.execution_count < 0:
            raise ValidationException(
                "Execution count cannot be negative", field="execution_count"
            )

    @classmethod
    def create(
        cls,
        user_id: UserId,
        name: str,
        description: str,
        config: WorkflowConfig,
        icon: str | None = None,
        icon_color: str | None = None,
        template_id: TemplateId | None = None,
    ) -> "Workflow":
        """Create a new draft workflow and record WorkflowCreated."""
        workflow = cls(
            user_id=user_id,
            name=name,
            description=description,
            config=config,
            icon=icon,
            icon_color=icon_color,
            template_id=template_id,
        )
        workflow._record(
            WorkflowCreated(workflow_id=None, user_id=user_id.value, name=name)
        )
        return workflow

    # Queries

    @property
    def is_new(self) -> bool:
        return self.id is None

    def belongs_to(self, user_id: UserId) -> bool:
        return self.user_id == user_id

    def is_active(self) -> bool:
        return self.status == WorkflowStatus.ACTIVE

    def has_steps(self) -> bool:
        return self.config.has_steps()

    def can_be_deleted(self) -> bool:
        return self.status in _DELETABLE_STATUSES

    # Mutators

    def update_details(self, name: str, description: str) -> None:
        if not name or not name.strip():
            raise ValidationException("Workflow name is required", field="name")
        self.name = name
        self.description = description
        self._touch()

    def update_config(self, config: WorkflowConfig) -> None:
        self.config = config
        self._touch()

    def update_icon(self, icon: str | None, icon_color: str | None) -> None:
        self.icon = icon
        self.icon_color = icon_color
        self._touch()

    # State machine

    def activate(self) -> None:
        """Move to ACTIVE.

        Raises:
            PreconditionViolationException: If the workflow has no steps.
        """
        if not self.has_steps():
            raise PreconditionViolationException(
                "Cannot activate workflow without steps",
                workflow_id=self._id_value(),
            )
        self._change_status(WorkflowStatus.ACTIVE)

    def pause(self) -> None:
        """Move ACTIVE to PAUSED.

        Raises:
            PreconditionViolationException: If the workflow is not active.
        """
        if not self.is_active():
            raise PreconditionViolationException(
                "Can only pause active workflows",
                workflow_id=self._id_value(),
                status=self.status.value,
            )
        self._change_status(WorkflowStatus.PAUSED)

    def mark_as_error(self, reason: str) -> None:
        """Move to ERROR from any state. Execution bookkeeping is left untouched."""
        self._change_status(WorkflowStatus.ERROR, reason=reason)

    def execute(self, ip_address: str | None = None) -> WorkflowExecution:
        """Start a run: bump counters and return a running execution record.

        The caller drives the returned execution to completion.

        Raises:
            PreconditionViolationException: If the workflow is not active.
        """
        if not self.is_active():
            raise PreconditionViolationException(
                "Can only execute active workflows",
                workflow_id=self._id_value(),
                status=self.status.value,
            )
        started_at = utc_now()
        execution = WorkflowExecution(
            id=generate_execution_id(started_at), started_at=started_at
        )
        self.last_run = started_at
        self.execution_count += 1
        self._touch()
        self._record(
            WorkflowExecuted(
                workflow_id=self._id_value(),
                user_id=self.user_id.value,
                execution_id=execution.id,
                ip_address=ip_address,
            )
        )
        return execution

    def mark_for_deletion(self) -> None:
        """Record WorkflowDeleted. Status is left as is; the repository removes the row.

        Raises:
            PreconditionViolationException: If the workflow is active or in error.
        """
        if not self.can_be_deleted():
            raise PreconditionViolationException(
                "Cannot delete active workflow. Pause it first.",
                workflow_id=self._id_value(),
                status=self.status.value,
            )
        self._record(
            WorkflowDeleted(workflow_id=self._id_value(), user_id=self.user_id.value)
        )

    def clone(self, new_name: str) -> "Workflow":
        """Return a new draft copy with a deep-copied config and zeroed counters."""
        cloned = Workflow(
            user_id=self.user_id,
            name=new_name,
            description=f"Copy of {self.description}",
            config=self.config.copy(),
            icon=self.icon,
            icon_color=self.icon_color,
            template_id=self.template_id,
        )
        cloned._record(
            WorkflowCreated(workflow_id=None, user_id=self.user_id.value, name=new_name)
        )
        return cloned

    # Persistence support

    def mark_persisted(self, workflow_id: WorkflowId, version: int) -> None:
        """Record the identity and version assigned by a repository write."""
        if self.id is not None and self.id != workflow_id:
            raise ValueError(
                f"Workflow already has id {self.id}; cannot reassign to {workflow_id}"
            )
        self.id = workflow_id
        self.version = version
        self._stamp_identity("workflow_id", workflow_id.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self._id_value(),
            "user_id": self.user_id.value,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "config": self.config.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "execution_count": self.execution_count,
            "icon": self.icon,
            "icon_color": self.icon_color,
            "template_id": self.template_id.value if self.template_id else None,
        }

    # Internals

    def _id_value(self) -> int | None:
        return self.id.value if self.id else None

    def _touch(self) -> None:
        now = utc_now()
        # Clock can step backwards; updated_at must not.
        self.updated_at = now if now > self.updated_at else self.updated_at

    def _change_status(self, new_status: WorkflowStatus, reason: str | None = None) -> None:
        old_status = self.status
        self.status = new_status
        self._touch()
        self._record(
            WorkflowStatusChanged(
                workflow_id=self._id_value(),
                user_id=self.user_id.value,
                old_status=old_status,
                new_status=new_status,
                reason=reason,
            )
        )
