"""Base repository: row lookup, insert, versioned update and delete for aggregate tables."""

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from flowdash.domain.exceptions import ConcurrencyConflictException
from flowdash.infrastructure.persistence.models.mixins import AggregateModel


def escape_like(value: str) -> str:
    """Escape LIKE wildcards so a search term matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


ModelType = TypeVar("ModelType", bound=AggregateModel)


class BaseRepository(Generic[ModelType]):
    """Row-level helpers shared by the aggregate repositories.

    Subclasses map between rows and aggregates. Writes only flush; the
    session owner commits or rolls back (see database.get_session).
    """

    resource_type: str = "resource"

    def __init__(self, db: AsyncSession, model: type[ModelType]) -> None:
        self.db = db
        self.model = model

    def _select(self) -> Select[tuple[ModelType]]:
        # Rows may have been changed by a Core UPDATE in this session.
        return select(self.model).execution_options(populate_existing=True)

    async def _get_row(self, row_id: int) -> ModelType | None:
        result = await self.db.execute(self._select().where(self.model.id == row_id))
        return result.scalar_one_or_none()

    async def _all(self, stmt: Select[tuple[ModelType]]) -> Sequence[ModelType]:
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def _count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def _insert(self, values: dict[str, Any]) -> ModelType:
        """Insert a row at version 1 and return it with its generated id."""
        row = self.model(**values, version=1)
        self.db.add(row)
        await self.db.flush()
        return row

    async def _compare_and_swap(
        self, row_id: int, expected_version: int, values: dict[str, Any]
    ) -> int:
        """Write values only if the row is still at expected_version.

        Returns:
            The new version.

        Raises:
            ConcurrencyConflictException: Row missing or at another version.
        """
        stmt = (
            update(self.model)
            .where(self.model.id == row_id, self.model.version == expected_version)
            .values(**values, version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            raise ConcurrencyConflictException(self.resource_type, row_id, expected_version)
        return expected_version + 1

    async def _delete_row(self, row_id: int) -> None:
        await self.db.execute(
            delete(self.model)
            .where(self.model.id == row_id)
            .execution_options(synchronize_session=False)
        )
