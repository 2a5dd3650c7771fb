"""In-process repository implementations."""

from flowdash.infrastructure.memory.repositories import (
    InMemoryConnectedAppRepository,
    InMemoryTemplateRepository,
    InMemoryWorkflowRepository,
)

__all__ = [
    "InMemoryConnectedAppRepository",
    "InMemoryTemplateRepository",
    "InMemoryWorkflowRepository",
]
