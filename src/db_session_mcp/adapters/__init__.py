"""Dialect strategies for the introspection queries."""

from .base import SYSTEM_SCHEMAS, BaseAdapter, normalize_table_type, split_index_columns
from .mysql import MySQLAdapter
from .postgresql import PostgresAdapter
from ..models.dialect import Dialect

__all__ = [
    "BaseAdapter",
    "PostgresAdapter",
    "MySQLAdapter",
    "SYSTEM_SCHEMAS",
    "get_adapter",
    "normalize_table_type",
    "split_index_columns",
]

_ADAPTERS: dict[Dialect, BaseAdapter] = {
    Dialect.POSTGRES: PostgresAdapter(),
    Dialect.MYSQL: MySQLAdapter(),
}


def get_adapter(dialect: Dialect) -> BaseAdapter:
    """
    Return the strategy object for a dialect.

    Args:
        dialect: Detected or assumed dialect

    Returns:
        Shared, stateless adapter instance
    """
    return _ADAPTERS[Dialect(dialect)]
