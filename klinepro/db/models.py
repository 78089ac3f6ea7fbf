"""
SQLAlchemy table definitions for the KlinePro database.

Klines are stored one table per symbol/interval (e.g. ``BTCUSDT_12h``),
all sharing the same column layout.
"""

import re

from sqlalchemy import (
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
)

metadata = MetaData()

TABLE_NAME_RE = re.compile(r"^[A-Za-z0-9_]{1,64}$")


def validate_table_name(name: str) -> str:
    if not TABLE_NAME_RE.match(name or ""):
        raise ValueError(f"Invalid table name: {name!r}")
    return name


def kline_table(name: str) -> Table:
    """Get (or define) the kline table with this name."""
    validate_table_name(name)
    if name in metadata.tables:
        return metadata.tables[name]

    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("open_time", Integer, nullable=False, unique=True, index=True),
        Column("close_time", Integer, nullable=True),
        Column("open", Float, nullable=False),
        Column("high", Float, nullable=False),
        Column("low", Float, nullable=False),
        Column("close", Float, nullable=False),
        Column("volume", Float, nullable=False, default=0.0),
        Column("quote_volume", Float, nullable=True),
        Column("trade_count", Integer, nullable=True),
        Column("taker_buy_volume", Float, nullable=True),
        Column("taker_buy_quote_volume", Float, nullable=True),
        Column("ignore", String(32), nullable=True),
    )
