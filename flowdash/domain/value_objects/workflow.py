"""Workflow configuration and execution value objects.

WorkflowConfig and its steps are immutable values owned by the Workflow
aggregate; replacing the configuration means building a new WorkflowConfig.
WorkflowExecution is the transient record of one run and is the only
mutable object here: the execution service drives it to completion.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flowdash.domain.enums import ExecutionStatus, LogLevel, TriggerType
from flowdash.shared.utils.datetime import utc_now


@dataclass(frozen=True)
class WorkflowStep:
    """One node of a workflow's ordered step list.

    ``config`` is free-form; the keys ``requiresApp`` and ``appName``
    declare a dependency on a connected app resolved at run time by name.
    ``position`` is a layout hint only.
    """

    id: str
    type: str
    name: str
    config: dict[str, Any] = field(default_factory=dict)
    position: dict[str, float] = field(default_factory=lambda: {"x": 0, "y": 0})
    connections: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Step id must be a non-empty string")
        if not self.type:
            raise ValueError("Step type must be a non-empty string")

    @property
    def requires_app(self) -> bool:
        return bool(self.config.get("requiresApp"))

    @property
    def app_name(self) -> str | None:
        return self.config.get("appName")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "config": copy.deepcopy(self.config),
            "position": dict(self.position),
            "connections": list(self.connections),
        }

    @staticmethod
    def from_dict(obj: dict[str, Any]) -> "WorkflowStep":
        return WorkflowStep(
            id=str(obj["id"]),
            type=str(obj["type"]),
            name=str(obj.get("name") or obj["id"]),
            config=copy.deepcopy(obj.get("config") or {}),
            position=dict(obj.get("position") or {"x": 0, "y": 0}),
            connections=tuple(str(c) for c in obj.get("connections") or ()),
        )


@dataclass(frozen=True)
class WorkflowTrigger:
    """How a workflow is started (schedule, webhook, manual)."""

    type: TriggerType
    config: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type.value, "config": copy.deepcopy(self.config)}

    @staticmethod
    def from_dict(obj: dict[str, Any]) -> "WorkflowTrigger":
        return WorkflowTrigger(
            type=TriggerType(obj["type"]),
            config=copy.deepcopy(obj.get("config") or {}),
        )


@dataclass(frozen=True)
class WorkflowConfig:
    """Steps, optional triggers and free-form settings of a workflow."""

    steps: tuple[WorkflowStep, ...] = ()
    triggers: tuple[WorkflowTrigger, ...] = ()
    settings: dict[str, Any] = field(default_factory=dict)

    def has_steps(self) -> bool:
        return len(self.steps) > 0

    def step_ids(self) -> set[str]:
        return {step.id for step in self.steps}

    def copy(self) -> "WorkflowConfig":
        """Return a deep copy (no shared mutable step configs)."""
        return copy.deepcopy(self)

    def to_dict(self) -> dict[str, Any]:
        return {
            "steps": [s.to_dict() for s in self.steps],
            "triggers": [t.to_dict() for t in self.triggers],
            "settings": copy.deepcopy(self.settings),
        }

    @staticmethod
    def from_dict(obj: dict[str, Any] | None) -> "WorkflowConfig":
        obj = obj or {}
        return WorkflowConfig(
            steps=tuple(WorkflowStep.from_dict(s) for s in obj.get("steps") or ()),
            triggers=tuple(
                WorkflowTrigger.from_dict(t) for t in obj.get("triggers") or ()
            ),
            settings=copy.deepcopy(obj.get("settings") or {}),
        )


@dataclass(frozen=True)
class WorkflowExecutionLog:
    """One structured log entry of an execution run."""

    step_id: str
    level: LogLevel
    message: str
    data: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "timestamp": self.timestamp.isoformat(),
            "level": self.level.value,
            "message": self.message,
            "data": self.data,
        }


@dataclass
class WorkflowExecution:
    """Transient record of one run: starts running, ends completed or failed."""

    id: str
    started_at: datetime
    status: ExecutionStatus = ExecutionStatus.RUNNING
    completed_at: datetime | None = None
    logs: list[WorkflowExecutionLog] = field(default_factory=list)

    @property
    def is_finished(self) -> bool:
        return self.status != ExecutionStatus.RUNNING

    def complete(self, logs: list[WorkflowExecutionLog]) -> None:
        self._finish(ExecutionStatus.COMPLETED, logs)

    def fail(self, logs: list[WorkflowExecutionLog]) -> None:
        self._finish(ExecutionStatus.FAILED, logs)

    def _finish(self, status: ExecutionStatus, logs: list[WorkflowExecutionLog]) -> None:
        if self.is_finished:
            raise ValueError(f"Execution {self.id} already finished ({self.status.value})")
        self.status = status
        self.completed_at = utc_now()
        self.logs = list(logs)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "status": self.status.value,
            "logs": [log.to_dict() for log in self.logs],
        }
