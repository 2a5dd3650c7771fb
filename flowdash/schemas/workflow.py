"""Workflow input-shape and response schemas.

Command handlers validate raw config payloads with these models before
building domain value objects; response models serialize aggregates for
whatever layer sits on top.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from flowdash.domain.entities import ConnectedApp, Workflow
from flowdash.domain.enums import TriggerType
from flowdash.domain.value_objects import WorkflowConfig, WorkflowStep, WorkflowTrigger
from flowdash.shared.utils.datetime import ensure_utc


class StepPosition(BaseModel):
    """Canvas position of a step (layout only)."""

    x: float = 0
    y: float = 0


class WorkflowStepSchema(BaseModel):
    """Single workflow step; requiresApp steps must name their app."""

    id: str = Field(..., min_length=1, max_length=128)
    type: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    config: dict[str, Any] = Field(default_factory=dict)
    position: StepPosition = Field(default_factory=StepPosition)
    connections: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def require_app_name(self) -> "WorkflowStepSchema":
        if self.config.get("requiresApp") and not self.config.get("appName"):
            raise ValueError(f"Step {self.name} sets requiresApp but has no appName")
        return self

    def to_domain(self) -> WorkflowStep:
        return WorkflowStep(
            id=self.id,
            type=self.type,
            name=self.name,
            config=self.config,
            position={"x": self.position.x, "y": self.position.y},
            connections=tuple(self.connections),
        )


class WorkflowTriggerSchema(BaseModel):
    type: TriggerType
    config: dict[str, Any] = Field(default_factory=dict)

    def to_domain(self) -> WorkflowTrigger:
        return WorkflowTrigger(type=self.type, config=self.config)


class WorkflowConfigSchema(BaseModel):
    """Workflow configuration payload. Step ids must be unique."""

    steps: list[WorkflowStepSchema] = Field(default_factory=list)
    triggers: list[WorkflowTriggerSchema] = Field(default_factory=list)
    settings: dict[str, Any] = Field(default_factory=dict)

    @field_validator("steps")
    @classmethod
    def unique_step_ids(cls, steps: list[WorkflowStepSchema]) -> list[WorkflowStepSchema]:
        seen: set[str] = set()
        for step in steps:
            if step.id in seen:
                raise ValueError(f"Duplicate step id: {step.id}")
            seen.add(step.id)
        return steps

    def to_domain(self) -> WorkflowConfig:
        return WorkflowConfig(
            steps=tuple(s.to_domain() for s in self.steps),
            triggers=tuple(t.to_domain() for t in self.triggers),
            settings=self.settings,
        )


def parse_workflow_config(raw: dict[str, Any] | None) -> WorkflowConfig:
    """Validate a raw config mapping and return the domain value.

    Raises:
        pydantic.ValidationError: If the payload shape is invalid.
    """
    return WorkflowConfigSchema.model_validate(raw or {}).to_domain()


class WorkflowDetailsInput(BaseModel):
    """Name/description pair shared by create, update, clone."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = Field(default="", max_length=2000)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("name must not be blank")
        return value


class ConnectAppInput(BaseModel):
    """Token payload for connecting an app."""

    app_name: str = Field(..., min_length=1, max_length=128)
    access_token: str = Field(..., min_length=1)
    refresh_token: str | None = None
    token_expiry: datetime | None = None

    @field_validator("token_expiry")
    @classmethod
    def expiry_as_utc(cls, value: datetime | None) -> datetime | None:
        # Naive expiries are read as UTC.
        return ensure_utc(value)


class WorkflowResponse(BaseModel):
    """Workflow read model."""

    model_config = ConfigDict(from_attributes=True)

    id: int | None
    user_id: int
    name: str
    description: str
    status: str
    config: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    last_run: datetime | None
    execution_count: int
    icon: str | None
    icon_color: str | None
    template_id: int | None = None

    @classmethod
    def from_domain(cls, workflow: Workflow) -> "WorkflowResponse":
        return cls(
            id=workflow.id.value if workflow.id else None,
            user_id=workflow.user_id.value,
            name=workflow.name,
            description=workflow.description,
            status=workflow.status.value,
            config=workflow.config.to_dict(),
            created_at=workflow.created_at,
            updated_at=workflow.updated_at,
            last_run=workflow.last_run,
            execution_count=workflow.execution_count,
            icon=workflow.icon,
            icon_color=workflow.icon_color,
            template_id=workflow.template_id.value if workflow.template_id else None,
        )


class ConnectedAppResponse(BaseModel):
    """Connected app read model; never carries tokens."""

    id: int | None
    user_id: int | None
    name: str
    description: str
    icon: str
    status: str
    token_expiry: datetime | None
    has_valid_token: bool

    @classmethod
    def from_domain(cls, app: ConnectedApp) -> "ConnectedAppResponse":
        return cls(
            id=app.id.value if app.id else None,
            user_id=app.user_id.value if app.user_id else None,
            name=app.name,
            description=app.description,
            icon=app.icon,
            status=app.status.value,
            token_expiry=app.token_expiry,
            has_valid_token=app.has_valid_token(),
        )
