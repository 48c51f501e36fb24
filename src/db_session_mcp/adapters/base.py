"""Base adapter: the dialect-specific SQL behind every introspection operation."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Optional, Sequence

from db_session_mcp.errors import QueryExecutionError
from db_session_mcp.models.database import DBInfo
from db_session_mcp.models.dialect import Dialect
from db_session_mcp.models.table import ColumnInfo, IndexInfo, TableStats
from db_session_mcp.utils.serialization import decode_bytes

if TYPE_CHECKING:
    from db_session_mcp.core.connection import DatabaseConnection

NOT_AVAILABLE = "N/A"

# Schemas excluded from listings by one dialect or the other
SYSTEM_SCHEMAS = frozenset(
    {"information_schema", "pg_catalog", "mysql", "performance_schema", "sys"}
)

# Columns included in the analyze_table nullability map
COLUMN_STATS_LIMIT = 5


def normalize_table_type(table_type: str) -> str:
    """Map information_schema table types to ``table`` / ``view``."""
    normalized = (table_type or "").lower()
    if "base table" in normalized:
        return "table"
    if "view" in normalized:
        return "view"
    return normalized


def split_index_columns(value: Any) -> list[str]:
    """
    Split an aggregated index column value into column names.

    Postgres arrays arrive either as a list or as a brace-delimited literal
    (``{a,b}``); MySQL ``GROUP_CONCAT`` yields ``a,b``.
    """
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value]
    if isinstance(value, (bytes, bytearray, memoryview)):
        value = decode_bytes(bytes(value))

    text_value = str(value)
    if text_value.startswith("{") and text_value.endswith("}"):
        text_value = text_value[1:-1]
    return [part.strip() for part in text_value.split(",")]


def as_text(value: Any) -> str:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return decode_bytes(bytes(value))
    return str(value)


class BaseAdapter(ABC):
    """Base adapter defining the dialect-specific interface."""

    dialect: Dialect
    # Identifier quote character
    quote_char: str = '"'

    @abstractmethod
    def list_tables_query(self, schema: Optional[str]) -> tuple[str, dict[str, Any]]:
        """
        Build the table listing query.

        Args:
            schema: Only list this schema; None excludes system schemas

        Returns:
            SQL text and its bind parameters
        """
        ...

    @abstractmethod
    def columns_query(self) -> str:
        """SQL returning name, data_type, is_nullable, default_value,
        character_maximum_length, is_primary_key for ``:table_name`` in ``:schema``."""
        ...

    @abstractmethod
    def indexes_query(self) -> str:
        """SQL returning index_name, columns, is_unique for ``:table_name`` in ``:schema``."""
        ...

    @abstractmethod
    async def get_table_stats(
        self, conn: "DatabaseConnection", table_name: str, schema: str
    ) -> TableStats:
        """
        Collect row count, sizes, analysis time and column nullability.

        Only the row count is mandatory; other figures degrade to ``"N/A"``.

        Raises:
            QueryExecutionError: If the row count cannot be read
        """
        ...

    @abstractmethod
    async def get_database_info(self, conn: "DatabaseConnection") -> DBInfo:
        """
        Collect database name, version, schemas and table count.

        Raises:
            QueryExecutionError: If any of the queries fails
        """
        ...

    @abstractmethod
    def explain_variants(self, query: str) -> list[str]:
        """EXPLAIN statements to try for this dialect, in order."""
        ...

    async def get_columns(
        self, conn: "DatabaseConnection", table_name: str, schema: str
    ) -> list[ColumnInfo]:
        """Fetch column metadata for a table."""
        result = await conn.fetch(
            self.columns_query(), {"table_name": table_name, "schema": schema}
        )
        return [self._column_from_row(row) for row in result.rows]

    async def get_indexes(
        self, conn: "DatabaseConnection", table_name: str, schema: str
    ) -> list[IndexInfo]:
        """Fetch index metadata for a table."""
        result = await conn.fetch(
            self.indexes_query(), {"table_name": table_name, "schema": schema}
        )
        return [
            IndexInfo(
                name=as_text(row[0]),
                columns=split_index_columns(row[1]),
                is_unique=bool(row[2]),
            )
            for row in result.rows
        ]

    def quote_identifier(self, name: str) -> str:
        """Quote an identifier, doubling embedded quote characters."""
        q = self.quote_char
        return f"{q}{name.replace(q, q + q)}{q}"

    def _build_table_reference(self, table_name: str, schema: Optional[str]) -> str:
        """Build quoted qualified table reference."""
        if schema:
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table_name)}"
        return self.quote_identifier(table_name)

    async def _column_nullability(
        self,
        conn: "DatabaseConnection",
        sql: str,
        params: dict[str, Any],
    ) -> dict[str, str]:
        """Best-effort column nullability map; empty when the query fails."""
        try:
            result = await conn.fetch(sql, params)
        except QueryExecutionError:
            return {}
        return {as_text(row[0]): as_text(row[1]) for row in result.rows}

    @staticmethod
    def _column_from_row(row: Sequence[Any]) -> ColumnInfo:
        default = row[3]
        max_length = row[4]
        return ColumnInfo(
            name=as_text(row[0]),
            data_type=as_text(row[1]),
            is_nullable=bool(row[2]),
            default_value=as_text(default) if default not in (None, "") else None,
            char_max_length=int(max_length) if max_length is not None else None,
            is_primary_key=bool(row[5]),
        )
