"""Pydantic models for configuration, metadata and tool results."""

from .config import (
    ConnectionDescriptor,
    ConnectionsConfig,
    DatabaseConfig,
    LoggingConfig,
    ServerSettings,
)
from .database import DBInfo
from .dialect import Dialect
from .query import (
    ConnectionInfo,
    ConnectionList,
    ConnectionTestResult,
    DataResult,
    ExecuteResult,
    ExplainPlan,
    RowSet,
    SelectResult,
    SwitchResult,
)
from .session import SessionState
from .table import ColumnInfo, IndexInfo, TableDescription, TableEntry, TableStats

__all__ = [
    "ConnectionDescriptor",
    "ConnectionsConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "ServerSettings",
    "DBInfo",
    "Dialect",
    "ConnectionInfo",
    "ConnectionList",
    "ConnectionTestResult",
    "DataResult",
    "ExecuteResult",
    "ExplainPlan",
    "RowSet",
    "SelectResult",
    "SwitchResult",
    "SessionState",
    "ColumnInfo",
    "IndexInfo",
    "TableDescription",
    "TableEntry",
    "TableStats",
]
