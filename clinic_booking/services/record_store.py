"""Generic record store over SQLAlchemy Core tables."""

from enum import Enum
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Table, and_, delete, insert, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from clinic_booking.core.exceptions import DuplicateRecordException, StoreFailureException

logger = structlog.get_logger()


class RecordStore:
    """
    Persistence for accounts, doctor profiles and appointments.

    Records are plain dicts keyed by column name. Query criteria are passed
    as keyword arguments: a scalar means equality, a list/tuple/set means
    membership and ``None`` means IS NULL.
    """

    def __init__(self, db: AsyncSession):
        """Initialize store with database session."""
        self.db = db

    @staticmethod
    def _plain(value: Any) -> Any:
        """Unwrap enum members to their stored value."""
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, list | tuple | set | frozenset):
            return [v.value if isinstance(v, Enum) else v for v in value]
        return value

    @staticmethod
    def _conditions(table: Table, criteria: dict[str, Any]) -> list[ColumnElement[bool]]:
        """Translate keyword criteria into column expressions."""
        conditions = []
        for name, value in criteria.items():
            column = table.c[name]
            value = RecordStore._plain(value)
            if value is None:
                conditions.append(column.is_(None))
            elif isinstance(value, list):
                conditions.append(column.in_(value))
            else:
                conditions.append(column == value)
        return conditions

    @staticmethod
    def _plain_values(values: dict[str, Any]) -> dict[str, Any]:
        """Unwrap enum members in a values mapping."""
        return {key: RecordStore._plain(value) for key, value in values.items()}

    async def _execute(self, stmt: Any, *, commit: bool = False) -> Any:
        """Run a statement, mapping driver faults onto store exceptions."""
        try:
            result = await self.db.execute(stmt)
            rows = result.mappings().all() if result.returns_rows else result.rowcount
            if commit:
                await self.db.commit()
            return rows
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning("record_store_integrity_error", error=str(e.orig))
            raise DuplicateRecordException("Record violates a uniqueness constraint") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("record_store_failure", error=str(e))
            raise StoreFailureException() from e

    async def find_by_id(self, table: Table, record_id: UUID) -> dict | None:
        """Fetch a single record by primary key."""
        rows = await self._execute(select(table).where(table.c.id == record_id))
        return dict(rows[0]) if rows else None

    async def find_one(self, table: Table, **criteria: Any) -> dict | None:
        """Fetch the first record matching the criteria."""
        stmt = select(table).where(and_(*self._conditions(table, criteria))).limit(1)
        rows = await self._execute(stmt)
        return dict(rows[0]) if rows else None

    async def find(
        self,
        table: Table,
        *,
        order_by: list[ColumnElement] | None = None,
        limit: int | None = None,
        **criteria: Any,
    ) -> list[dict]:
        """Fetch every record matching the criteria."""
        stmt = select(table)
        conditions = self._conditions(table, criteria)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        rows = await self._execute(stmt)
        return [dict(row) for row in rows]

    async def create(self, table: Table, values: dict[str, Any]) -> dict:
        """Insert a record and return it as stored."""
        stmt = insert(table).values(**self._plain_values(values)).returning(table)
        rows = await self._execute(stmt, commit=True)
        return dict(rows[0])

    async def save(self, table: Table, record_id: UUID, values: dict[str, Any]) -> dict | None:
        """
        Update a record in place.

        All values land in one UPDATE statement, so either every field is
        written or none is.

        Returns:
            The updated record, or None if it no longer exists
        """
        stmt = (
            update(table)
            .where(table.c.id == record_id)
            .values(**self._plain_values(values))
            .returning(table)
        )
        rows = await self._execute(stmt, commit=True)
        return dict(rows[0]) if rows else None

    async def delete_one(self, table: Table, **criteria: Any) -> bool:
        """Delete the first record matching the criteria; returns whether one existed."""
        record = await self.find_one(table, **criteria)
        if record is None:
            return False

        await self._execute(delete(table).where(table.c.id == record["id"]), commit=True)
        return True
