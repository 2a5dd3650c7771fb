"""SQLAlchemy repository implementations."""

from flowdash.infrastructure.persistence.repositories.connected_app_repo import (
    ConnectedAppRepository,
)
from flowdash.infrastructure.persistence.repositories.template_repo import (
    TemplateRepository,
)
from flowdash.infrastructure.persistence.repositories.workflow_repo import (
    WorkflowRepository,
)

__all__ = [
    "ConnectedAppRepository",
    "TemplateRepository",
    "WorkflowRepository",
]
