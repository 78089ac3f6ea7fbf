"""
Fluent query builder over SQLAlchemy Core.

Conditions are a closed set of variants (Eq, Ne, Gt, ...). Each maps to
exactly one parameterized SQL expression; anything else is a TypeError.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Sequence, Union

from sqlalchemy import Select, String, Table, select
from sqlalchemy.ext.asyncio import AsyncConnection
from sqlalchemy.sql.elements import ColumnElement


# =============================================================================
# CONDITIONS
# =============================================================================


@dataclass(frozen=True)
class Eq:
    value: Any


@dataclass(frozen=True)
class Ne:
    value: Any


@dataclass(frozen=True)
class Gt:
    value: Any


@dataclass(frozen=True)
class Gte:
    value: Any


@dataclass(frozen=True)
class Lt:
    value: Any


@dataclass(frozen=True)
class Lte:
    value: Any


@dataclass(frozen=True)
class In:
    values: Sequence[Any]


@dataclass(frozen=True)
class NotIn:
    values: Sequence[Any]


@dataclass(frozen=True)
class Like:
    pattern: str


@dataclass(frozen=True)
class IsNull:
    value: bool = True


Condition = Union[Eq, Ne, Gt, Gte, Lt, Lte, In, NotIn, Like, IsNull]


def to_expression(column: ColumnElement, condition: Condition) -> ColumnElement:
    """Translate one condition into a SQL expression on `column`."""
    if isinstance(condition, Eq):
        return column == condition.value
    if isinstance(condition, Ne):
        return column != condition.value
    if isinstance(condition, Gt):
        return column > condition.value
    if isinstance(condition, Gte):
        return column >= condition.value
    if isinstance(condition, Lt):
        return column < condition.value
    if isinstance(condition, Lte):
        return column <= condition.value
    if isinstance(condition, In):
        return column.in_(list(condition.values))
    if isinstance(condition, NotIn):
        return column.not_in(list(condition.values))
    if isinstance(condition, Like):
        if not isinstance(column.type, String):
            raise TypeError(f"Like needs a string column, got {column.type!r}")
        return column.like(condition.pattern)
    if isinstance(condition, IsNull):
        return column.is_(None) if condition.value else column.is_not(None)
    raise TypeError(f"Unsupported condition: {condition!r}")


_CONDITION_TYPES = (Eq, Ne, Gt, Gte, Lt, Lte, In, NotIn, Like, IsNull)


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


# =============================================================================
# QUERY BUILDER
# =============================================================================


class QueryBuilder:
    """
    Fluent SELECT builder for one table.

    Usage:
        rows = await (
            QueryBuilder(table)
            .where(open_time=Gte(start), close=Gt(0))
            .order_by("open_time", SortDirection.DESC)
            .limit(74)
            .get(conn)
        )
    """

    def __init__(self, table: Table):
        self.table = table
        self._fields: list[str] = []
        self._conditions: list[ColumnElement] = []
        self._order_by: Optional[tuple[str, SortDirection]] = None
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None

    def _column(self, field: str) -> ColumnElement:
        if field not in self.table.c:
            raise ValueError(f"Unknown column {field!r} on table {self.table.name}")
        return self.table.c[field]

    def select(self, *fields: str) -> "QueryBuilder":
        for field in fields:
            self._column(field)
        self._fields = list(fields)
        return self

    def where(self, **conditions: Any) -> "QueryBuilder":
        """Add AND-ed conditions. A bare value means Eq(value)."""
        for field, condition in conditions.items():
            column = self._column(field)
            if not isinstance(condition, _CONDITION_TYPES):
                condition = Eq(condition)
            self._conditions.append(to_expression(column, condition))
        return self

    def order_by(
        self, field: str, direction: SortDirection = SortDirection.ASC
    ) -> "QueryBuilder":
        self._column(field)
        self._order_by = (field, SortDirection(direction))
        return self

    def limit(self, limit: int) -> "QueryBuilder":
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        self._limit = limit
        return self

    def offset(self, offset: int) -> "QueryBuilder":
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        self._offset = offset
        return self

    def build(self) -> Select:
        """Build the SELECT statement."""
        if self._fields:
            stmt = select(*(self.table.c[f] for f in self._fields))
        else:
            stmt = select(self.table)

        if self._conditions:
            stmt = stmt.where(*self._conditions)

        if self._order_by:
            field, direction = self._order_by
            column = self.table.c[field]
            stmt = stmt.order_by(column.desc() if direction == SortDirection.DESC else column.asc())

        if self._limit is not None:
            stmt = stmt.limit(self._limit)
        if self._offset is not None:
            stmt = stmt.offset(self._offset)

        return stmt

    async def get(self, conn: AsyncConnection) -> list[dict]:
        """Execute and return rows as dicts."""
        result = await conn.execute(self.build())
        return [dict(row) for row in result.mappings().all()]

    async def first(self, conn: AsyncConnection) -> Optional[dict]:
        """Return the first row, or None."""
        self.limit(1)
        rows = await self.get(conn)
        return rows[0] if rows else None
