"""Pydantic schemas for input validation and read models."""

from flowdash.schemas.workflow import (
    ConnectAppInput,
    ConnectedAppResponse,
    WorkflowConfigSchema,
    WorkflowDetailsInput,
    WorkflowResponse,
    WorkflowStepSchema,
    parse_workflow_config,
)

__all__ = [
    "ConnectAppInput",
    "ConnectedAppResponse",
    "WorkflowConfigSchema",
    "WorkflowDetailsInput",
    "WorkflowResponse",
    "WorkflowStepSchema",
    "parse_workflow_config",
]
