"""Template aggregate: a reusable workflow configuration in the shared catalog."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flowdash.domain.enums import TemplateIconColor, TemplateIconType
from flowdash.domain.events import EventRecorder, TemplateUsed
from flowdash.domain.exceptions import ValidationException
from flowdash.domain.value_objects.core import TemplateId, UserId, WorkflowId
from flowdash.domain.value_objects.workflow import WorkflowConfig
from flowdash.shared.utils.datetime import utc_now

POPULAR_USERS_THRESHOLD = 100


@dataclass(eq=False)
class Template(EventRecorder):
    """Domain aggregate for a workflow template.

    users_count counts how many workflows were created from the template.
    """

    name: str
    description: str
    icon_type: TemplateIconType
    icon_color: TemplateIconColor
    config: WorkflowConfig
    users_count: int = 0
    is_active: bool = True
    id: TemplateId | None = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    version: int = 0

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationException("Template name is required", field="name")
        if self.users_count < 0:
            raise ValidationException("Users count cannot be negative", field="users_count")

    @classmethod
    def create(
        cls,
        name: str,
        description: str,
        icon_type: TemplateIconType,
        icon_color: TemplateIconColor,
        config: WorkflowConfig,
    ) -> "Template":
        return cls(
            name=name,
            description=description,
            icon_type=icon_type,
            icon_color=icon_color,
            config=config,
        )

    def update_details(self, name: str, description: str) -> None:
        if not name or not name.strip():
            raise ValidationException("Template name is required", field="name")
        self.name = name
        self.description = description
        self._touch()

    def update_config(self, config: WorkflowConfig) -> None:
        self.config = config
        self._touch()

    def update_icon(self, icon_type: TemplateIconType, icon_color: TemplateIconColor) -> None:
        self.icon_type = icon_type
        self.icon_color = icon_color
        self._touch()

    def mark_as_used(self, user_id: UserId, workflow_id: WorkflowId | None) -> None:
        """Count one more workflow created from this template and record TemplateUsed."""
        self.users_count += 1
        self._touch()
        self._record(
            TemplateUsed(
                template_id=self.id.value if self.id else None,
                user_id=user_id.value,
                workflow_id=workflow_id.value if workflow_id else None,
            )
        )

    def activate(self) -> None:
        self.is_active = True
        self._touch()

    def deactivate(self) -> None:
        self.is_active = False
        self._touch()

    def is_popular(self) -> bool:
        return self.users_count >= POPULAR_USERS_THRESHOLD

    def can_be_deleted(self) -> bool:
        return self.users_count == 0

    def mark_persisted(self, template_id: TemplateId, version: int) -> None:
        if self.id is not None and self.id != template_id:
            raise ValueError(f"Template already has id {self.id}")
        self.id = template_id
        self.version = version
        self._stamp_identity("template_id", template_id.value)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id.value if self.id else None,
            "name": self.name,
            "description": self.description,
            "icon_type": self.icon_type.value,
            "icon_color": self.icon_color.value,
            "users_count": self.users_count,
            "config": self.config.to_dict(),
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    def _touch(self) -> None:
        now = utc_now()
        self.updated_at = now if now > self.updated_at else self.updated_at
