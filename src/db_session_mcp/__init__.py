"""
db_session_mcp - Session-scoped database MCP server

A Model Context Protocol (MCP) server that exposes query, introspection and
connection-switching tools for PostgreSQL and MySQL databases.
"""

__version__ = "0.1.0"

from .errors import DatabaseMCPError
from .models.config import ConnectionDescriptor, DatabaseConfig, ServerSettings
from .models.database import DBInfo
from .models.dialect import Dialect
from .models.query import ExecuteResult, ExplainPlan, RowSet
from .models.table import ColumnInfo, IndexInfo, TableDescription, TableEntry, TableStats

__all__ = [
    "DatabaseMCPError",
    "ConnectionDescriptor",
    "DatabaseConfig",
    "ServerSettings",
    "DBInfo",
    "Dialect",
    "ExecuteResult",
    "ExplainPlan",
    "RowSet",
    "ColumnInfo",
    "IndexInfo",
    "TableDescription",
    "TableEntry",
    "TableStats",
]
