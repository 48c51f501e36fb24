"""PostgreSQL adapter."""

import datetime
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

ANALYZED_FORMAT = "%Y-%m-%d %H:%M:%S"


def _format_timestamp(value: Any) -> str:
    if isinstance(value, datetime.datetime):
        return value.strftime(ANALYZED_FORMAT)
    return as_text(value)


class PostgresAdapter(BaseAdapter):
    """PostgreSQL catalog queries."""

    dialect = Dialect.POSTGRES
    quote_char = '"'

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
            """
            SELECT
                table_name AS name,
                table_schema AS schema_name,
                table_type AS table_type
            FROM information_schema.tables
            WHERE table_schema NOT IN ('information_schema', 'pg_catalog')
            ORDER BY table_name
            """,
            {},
        )

    def columns_query(self) -> str:
        return """
            SELECT
                c.column_name,
                c.data_type,
                CASE WHEN c.is_nullable = 'YES' THEN true ELSE false END AS is_nullable,
                COALESCE(c.column_default, '') AS default_value,
                c.character_maximum_length,
                CASE WHEN pk.column_name IS NOT NULL THEN true ELSE false END AS is_primary_key
            FROM information_schema.columns c
            LEFT JOIN (
                SELECT ku.column_name
                FROM information_schema.table_constraints tc
                JOIN information_schema.key_column_usage ku
                    ON tc.constraint_name = ku.constraint_name
                    AND tc.table_schema = ku.table_schema
                WHERE tc.constraint_type = 'PRIMARY KEY'
                    AND tc.table_name = :table_name
                    AND tc.table_schema = :schema
            ) pk ON c.column_name = pk.column_name
            WHERE c.table_name = :table_name AND c.table_schema = :schema
            ORDER BY c.ordinal_position
        """

    def indexes_query(self) -> str:
        return """
            SELECT
                i.relname AS index_name,
                array_agg(a.attname ORDER BY array_position(ix.indkey, a.attnum)) AS columns,
                ix.indisunique AS is_unique
            FROM pg_class t
            JOIN pg_index ix ON t.oid = ix.indrelid
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey)
            JOIN pg_namespace n ON n.oid = t.relnamespace
            WHERE t.relname = :table_name AND n.nspname = :schema
            GROUP BY i.relname, ix.indisunique
            ORDER BY i.relname
        """

    async def get_table_stats(
        self, conn: "DatabaseConnection", table_name: str, schema: str
    ) -> TableStats:
        """Collect PostgreSQL table statistics."""
        table_ref = self._build_table_reference(table_name, schema)
        count = await conn.fetch_raw(f"SELECT COUNT(*) FROM {table_ref}")
        params = {"schema": schema, "table_name": table_name}

        total_size = table_size = index_size = NOT_AVAILABLE
        try:
            sizes = await conn.fetch(
                """
                SELECT
                    pg_size_pretty(pg_total_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename))) AS total_size,
                    pg_size_pretty(pg_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename))) AS table_size,
                    pg_size_pretty(
                        pg_total_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename))
                        - pg_relation_size(quote_ident(schemaname) || '.' || quote_ident(tablename))
                    ) AS index_size
                FROM pg_tables
                WHERE schemaname = :schema AND tablename = :table_name
                """,
                params,
            )
            row = sizes.first()
            if row is not None and None not in row[:3]:
                total_size, table_size, index_size = (as_text(v) for v in row[:3])
        except QueryExecutionError:
            pass  # Sizes are optional

        last_analyzed = NOT_AVAILABLE
        try:
            analyzed = await conn.fetch(
                """
                SELECT last_analyze, last_autoanalyze
                FROM pg_stat_user_tables
                WHERE schemaname = :schema AND relname = :table_name
                """,
                params,
            )
            row = analyzed.first()
            if row is not None:
                if row[0] is not None:
                    last_analyzed = _format_timestamp(row[0])
                elif row[1] is not None:
                    last_analyzed = f"{_format_timestamp(row[1])} (auto)"
                else:
                    last_analyzed = "Never"
        except QueryExecutionError:
            pass

        column_stats = await self._column_nullability(
            conn,
            f"""
            SELECT
                attname AS column_name,
                CASE WHEN attnotnull THEN 'Not Null' ELSE 'Nullable' END AS nullability
            FROM pg_attribute a
            JOIN pg_class t ON a.attrelid = t.oid
            JOIN pg_namespace n ON t.relnamespace = n.oid
            WHERE n.nspname = :schema AND t.relname = :table_name
                AND a.attnum > 0 AND NOT a.attisdropped
            ORDER BY a.attnum
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
            last_analyzed=last_analyzed,
            column_stats=column_stats,
        )

    async def get_database_info(self, conn: "DatabaseConnection") -> DBInfo:
        """Collect PostgreSQL database information."""
        name = await conn.fetch("SELECT current_database()")
        version = as_text((await conn.fetch("SELECT version()")).scalar())
        if "PostgreSQL" in version:
            parts = version.split()
            if len(parts) >= 2:
                version = f"PostgreSQL {parts[1]}"

        schemas = await conn.fetch(
            "SELECT schema_name FROM information_schema.schemata "
            "WHERE schema_name NOT IN ('information_schema', 'pg_catalog', 'pg_toast')"
        )
        table_count = await conn.fetch(
            "SELECT COUNT(*) FROM information_schema.tables "
            "WHERE table_schema NOT IN ('information_schema', 'pg_catalog', 'pg_toast')"
        )

        return DBInfo(
            database_name=as_text(name.scalar()),
            version=version,
            schemas=[as_text(row[0]) for row in schemas.rows],
            table_count=int(table_count.scalar() or 0),
        )

    def explain_variants(self, query: str) -> list[str]:
        return [f"EXPLAIN (FORMAT JSON, ANALYZE false) {query}", f"EXPLAIN {query}"]
