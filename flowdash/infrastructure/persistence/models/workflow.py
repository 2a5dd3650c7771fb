"""Workflow ORM model. Steps, triggers and settings live in one JSON config column."""

from datetime import datetime
from typing import Any

import sqlalchemy as sa
from sqlalchemy import JSON, CheckConstraint, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from flowdash.infrastructure.persistence.database import Base
from flowdash.infrastructure.persistence.models.mixins import AggregateModel


class WorkflowModel(AggregateModel, Base):
    """Workflow aggregate row. Table: workflow."""

    __tablename__ = "workflow"

    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    status: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    last_run: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    execution_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    icon: Mapped[str | None] = mapped_column(String(64), nullable=True)
    icon_color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    template_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("execution_count >= 0", name="ck_workflow_execution_count"),
        Index("ix_workflow_user_status", "user_id", "status"),
    )
