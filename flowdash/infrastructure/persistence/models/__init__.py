"""ORM models; importing this package registers every table on Base.metadata."""

from flowdash.infrastructure.persistence.models.connected_app import ConnectedAppModel
from flowdash.infrastructure.persistence.models.template import TemplateModel
from flowdash.infrastructure.persistence.models.workflow import WorkflowModel

__all__ = [
    "ConnectedAppModel",
    "TemplateModel",
    "WorkflowModel",
]
