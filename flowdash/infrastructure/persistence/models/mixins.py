"""SQLAlchemy mixins for common model patterns.

Provides: IntegerIdMixin, TimestampMixin, VersionedMixin and the combined
AggregateModel used by every aggregate table.
"""

from datetime import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy.orm import Mapped, declared_attr, mapped_column
from sqlalchemy.sql import func


class IntegerIdMixin:
    """Autoincrement integer primary key; aggregates carry positive int ids."""

    @declared_attr
    def id(cls) -> Mapped[int]:
        return mapped_column(Integer, primary_key=True, autoincrement=True)


class TimestampMixin:
    """created_at and updated_at (timezone-aware).

    Aggregates own their timestamps; repositories write them explicitly and
    the server defaults only cover rows inserted by hand.
    """

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(
            DateTime(timezone=True), server_default=func.now(), nullable=False
        )


class VersionedMixin:
    """Optimistic locking: version integer, 1 after the first insert."""

    @declared_attr
    def version(cls) -> Mapped[int]:
        return mapped_column(Integer, default=1, nullable=False)


class AggregateModel(IntegerIdMixin, TimestampMixin, VersionedMixin):
    """Combined mixin: integer id + timestamps + version."""

    __abstract__ = True
