"""MySQL adapter."""

from typing import TYPE_CHECKING, Any, Optional

from db_session_mcp.adapters.base import (
    COLUMN_STATS_LIMIT,
    NOT_AVAILABLE,
    BaseAdapter,
    as_text,
)
from db_session_mcp.errors import QueryExecutionError
from db_session_mcp.models.database import DBInfo
from db_session_mcp.models.dialect import Dialect
from db_session_mcp.models.table import TableStats

if TYPE_CHECKING:
    from db_session_mcp.core.connection import DatabaseConnection

# MySQL does not track analysis time in information_schema
LAST_ANALYZED = "N/A (MySQL)"

_SYSTEM_SCHEMA_LIST = "('information_schema', 'mysql', 'performance_schema', 'sys')"


def _format_megabytes(value: Any) -> str:
    if value is None:
        return NOT_AVAILABLE
    return f"{float(value):.2f} MB"


class MySQLAdapter(BaseAdapter):
    """MySQL catalog queries."""

    dialect = Dialect.MYSQL
    quote_char = "`"

    def list_tables_query(self, schema: Optional[str]) -> tuple[str, dict[str, Any]]:
        if schema:
            return (
                """
                SELECT
                    table_name AS name,
                    table_schema AS schema_name,
                    table_type AS table_type
                FROM information_schema.tables
                WHERE table_schema = :schema
                ORDER BY table_name
                """,
                {"schema": schema},
            )
        return (
            f"""
            SELECT
                table_name AS name,
                table_schema AS schema_name,
                table_type AS table_type
            FROM information_schema.tables
            WHERE table_schema NOT IN {_SYSTEM_SCHEMA_LIST}
            ORDER BY table_name
            """,
            {},
        )

    def columns_query(self) -> str:
        return """
            SELECT
                COLUMN_NAME AS column_name,
                DATA_TYPE AS data_type,
                CASE WHEN IS_NULLABLE = 'YES' THEN true ELSE false END AS is_nullable,
                COALESCE(COLUMN_DEFAULT, '') AS default_value,
                CHARACTER_MAXIMUM_LENGTH AS character_maximum_length,
                CASE WHEN COLUMN_KEY = 'PRI' THEN true ELSE false END AS is_primary_key
            FROM information_schema.columns
            WHERE table_name = :table_name AND table_schema = :schema
            ORDER BY ordinal_position
        """

    def indexes_query(self) -> str:
        return """
            SELECT
                INDEX_NAME AS index_name,
                GROUP_CONCAT(COLUMN_NAME ORDER BY SEQ_IN_INDEX) AS columns,
                CASE WHEN NON_UNIQUE = 0 THEN true ELSE false END AS is_unique
            FROM information_schema.statistics
            WHERE table_name = :table_name AND table_schema = :schema
            GROUP BY index_name, non_unique
            ORDER BY index_name
        """

    async def get_table_stats(
        self, conn: "DatabaseConnection", table_name: str, schema: str
    ) -> TableStats:
        """Collect MySQL table statistics."""
        table_ref = self._build_table_reference(table_name, schema)
        count = await conn.fetch_raw(f"SELECT COUNT(*) FROM {table_ref}")
        params = {"schema": schema, "table_name": table_name}

        total_size = table_size = index_size = NOT_AVAILABLE
        try:
            sizes = await conn.fetch(
                """
                SELECT
                    ROUND(((data_length + index_length) / 1024 / 1024), 2) AS total_size_mb,
                    ROUND((data_length / 1024 / 1024), 2) AS table_size_mb,
                    ROUND((index_length / 1024 / 1024), 2) AS index_size_mb
                FROM information_schema.tables
                WHERE table_schema = :schema AND table_name = :table_name
                """,
                params,
            )
            row = sizes.first()
            if row is not None:
                total_size, table_size, index_size = (
                    _format_megabytes(v) for v in row[:3]
                )
        except QueryExecutionError:
            pass  # Sizes are optional

        column_stats = await self._column_nullability(
            conn,
            f"""
            SELECT
                COLUMN_NAME,
                CASE WHEN IS_NULLABLE = 'YES' THEN 'Nullable' ELSE 'Not Null' END AS nullability
            FROM information_schema.columns
            WHERE table_schema = :schema AND table_name = :table_name
            ORDER BY ordinal_position
            LIMIT {COLUMN_STATS_LIMIT}
            """,
            params,
        )

        return TableStats(
            table_name=table_name,
            row_count=int(count.scalar() or 0),
            total_size=total_size,
            table_size=table_size,
            index_size=index_size,
            last_analyzed=LAST_ANALYZED,
            column_stats=column_stats,
        )

    async def get_database_info(self, conn: "DatabaseConnection") -> DBInfo:
        """Collect MySQL database information."""
        name = await conn.fetch("SELECT DATABASE()")
        version = await conn.fetch("SELECT VERSION()")
        schemas = await conn.fetch(
            "SELECT SCHEMA_NAME FROM information_schema.SCHEMATA "
            f"WHERE SCHEMA_NAME NOT IN {_SYSTEM_SCHEMA_LIST}"
        )
        table_count = await conn.fetch(
            "SELECT COUNT(*) FROM information_schema.tables "
            f"WHERE table_schema NOT IN {_SYSTEM_SCHEMA_LIST}"
        )

        db_name = name.scalar()
        return DBInfo(
            database_name=as_text(db_name) if db_name is not None else "",
            version=f"MySQL {as_text(version.scalar())}",
            schemas=[as_text(row[0]) for row in schemas.rows],
            table_count=int(table_count.scalar() or 0),
        )

    def explain_variants(self, query: str) -> list[str]:
        return [f"EXPLAIN FORMAT=JSON {query}", f"EXPLAIN {query}"]
