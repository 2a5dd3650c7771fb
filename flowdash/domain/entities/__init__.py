"""Domain entities and aggregates.

Pure domain models; no ORM or persistence concerns.
"""

from flowdash.domain.entities.connected_app import ConnectedApp
from flowdash.domain.entities.template import Template
from flowdash.domain.entities.workflow import Workflow

__all__ = [
    "ConnectedApp",
    "Template",
    "Workflow",
]
