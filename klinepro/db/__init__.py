"""
Database module for KlinePro.

Provides the async engine factory, kline tables, query builder and store.
"""

from klinepro.db.database import create_db_engine, close_db
from klinepro.db.models import kline_table, metadata
from klinepro.db.query import (
    Condition,
    Eq,
    Ne,
    Gt,
    Gte,
    Lt,
    Lte,
    In,
    NotIn,
    Like,
    IsNull,
    QueryBuilder,
    SortDirection,
)
from klinepro.db.store import KlineStore, TableNotFoundError

__all__ = [
    "create_db_engine",
    "close_db",
    "kline_table",
    "metadata",
    "Condition",
    "Eq",
    "Ne",
    "Gt",
    "Gte",
    "Lt",
    "Lte",
    "In",
    "NotIn",
    "Like",
    "IsNull",
    "QueryBuilder",
    "SortDirection",
    "KlineStore",
    "TableNotFoundError",
]
