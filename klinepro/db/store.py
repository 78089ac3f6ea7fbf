"""
Local kline store.

Reads and writes Bars in per-symbol kline tables through an injected
async engine.
"""

import logging
from typing import Optional, Sequence

from sqlalchemy import Table, inspect, select
from sqlalchemy.ext.asyncio import AsyncEngine

from klinepro.db.models import kline_table, validate_table_name
from klinepro.db.query import QueryBuilder, SortDirection
from klinepro.schemas.market import Bar

logger = logging.getLogger(__name__)

_BAR_FIELDS = (
    "open_time",
    "close_time",
    "open",
    "high",
    "low",
    "close",
    "volume",
    "quote_volume",
    "trade_count",
    "taker_buy_volume",
    "taker_buy_quote_volume",
)


class TableNotFoundError(LookupError):
    """Requested kline table does not exist."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        super().__init__(f"Kline table not found: {table_name}")


def _bar_to_row(bar: Bar) -> dict:
    return {field: getattr(bar, field) for field in _BAR_FIELDS}


def _row_to_bar(row: dict) -> Bar:
    return Bar(**{field: row.get(field) for field in _BAR_FIELDS if row.get(field) is not None})


class KlineStore:
    """Kline persistence over an async SQLAlchemy engine."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    def query(self, table_name: str) -> QueryBuilder:
        """Start a query on a kline table."""
        return QueryBuilder(kline_table(table_name))

    async def fetch(self, builder: QueryBuilder) -> list[dict]:
        """Run a built query and return raw rows."""
        async with self.engine.connect() as conn:
            return await builder.get(conn)

    async def table_exists(self, table_name: str) -> bool:
        validate_table_name(table_name)
        async with self.engine.connect() as conn:
            return await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).has_table(table_name)
            )

    async def create_table(self, table_name: str) -> Table:
        """Create the kline table if it does not exist."""
        table = kline_table(table_name)
        async with self.engine.begin() as conn:
            await conn.run_sync(table.create, checkfirst=True)
        return table

    async def insert_bars(self, table_name: str, bars: Sequence[Bar]) -> int:
        """
        Insert bars, skipping any open_time already stored.

        Returns the number of rows inserted.
        """
        table = await self.create_table(table_name)
        if not bars:
            return 0

        open_times = [bar.open_time for bar in bars]
        async with self.engine.begin() as conn:
            result = await conn.execute(
                select(table.c.open_time).where(table.c.open_time.in_(open_times))
            )
            existing = set(result.scalars().all())

            rows = []
            for bar in bars:
                if bar.open_time in existing:
                    continue
                existing.add(bar.open_time)
                rows.append(_bar_to_row(bar))

            if rows:
                await conn.execute(table.insert(), rows)

        logger.info(f"Stored {len(rows)} new bars in {table_name}")
        return len(rows)

    async def load_bars(self, table_name: str, limit: Optional[int] = None) -> list[Bar]:
        """
        Load the most recent `limit` bars (all when None), oldest first.

        Raises:
            TableNotFoundError: table does not exist
        """
        if not await self.table_exists(table_name):
            raise TableNotFoundError(table_name)

        builder = self.query(table_name).order_by("open_time", SortDirection.DESC)
        if limit is not None:
            builder.limit(limit)

        rows = await self.fetch(builder)
        rows.reverse()
        return [_row_to_bar(row) for row in rows]
