"""Workflow template ORM model."""

from typing import Any

import sqlalchemy as sa
from sqlalchemy import JSON, Boolean, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from flowdash.infrastructure.persistence.database import Base
from flowdash.infrastructure.persistence.models.mixins import AggregateModel


class TemplateModel(AggregateModel, Base):
    """Template row. Table: workflow_template."""

    __tablename__ = "workflow_template"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon_type: Mapped[str] = mapped_column(String(32), nullable=False)
    icon_color: Mapped[str] = mapped_column(String(32), nullable=False)
    config: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    users_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default=sa.text("0")
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default=sa.true()
    )
