"""Domain enumerations for flowdash.

Enums represent fixed sets of domain values (workflow status, app
connection status, execution status, log level, template icons).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class WorkflowStatus(_ValuesMixin, str, Enum):
    """Workflow lifecycle status.

    Draft is initial; Active <-> Paused cycle; Error is entered only through
    an explicit fault report.
    """

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    ERROR = "error"


class AppConnectionStatus(_ValuesMixin, str, Enum):
    """Connected app status."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    ERROR = "error"


class ExecutionStatus(_ValuesMixin, str, Enum):
    """Workflow execution (one run) status."""

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class LogLevel(_ValuesMixin, str, Enum):
    """Execution log entry level."""

    INFO = "info"
    WARN = "warn"
    ERROR = "error"


class StepType(_ValuesMixin, str, Enum):
    """Built-in workflow step types. Custom types may be registered."""

    TRIGGER = "trigger"
    ACTION = "action"
    CONDITION = "condition"
    TRANSFORM = "transform"


class TriggerType(_ValuesMixin, str, Enum):
    """How a workflow is started."""

    SCHEDULE = "schedule"
    WEBHOOK = "webhook"
    MANUAL = "manual"


class TemplateIconType(_ValuesMixin, str, Enum):
    """Template display icon."""

    SHARE = "share"
    MAIL = "mail"
    CALENDAR = "calendar"
    VIDEO = "video"
    MESSAGE = "message"
    FILE = "file"
    DATA = "data"
    AUTOMATION = "automation"


class TemplateIconColor(_ValuesMixin, str, Enum):
    """Template display icon color."""

    INDIGO = "indigo"
    GREEN = "green"
    AMBER = "amber"
    ROSE = "rose"
    SKY = "sky"
    PURPLE = "purple"
    EMERALD = "emerald"
    ORANGE = "orange"
