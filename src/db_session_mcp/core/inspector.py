"""Metadata introspection across the Postgres and MySQL catalogs.

Every operation first runs under the connection's resolved dialect and, if
that fails, once more under the other one. Each statement checks its own
connection out of the pool, so a failed first attempt leaves nothing behind
for the second.
"""

import logging
from typing import Awaitable, Callable, Optional, TypeVar

from db_session_mcp.adapters import (
    SYSTEM_SCHEMAS,
    BaseAdapter,
    MySQLAdapter,
    PostgresAdapter,
    get_adapter,
    normalize_table_type,
)
from db_session_mcp.adapters.base import as_text
from db_session_mcp.core.classifier import check_forbidden
from db_session_mcp.core.connection import DatabaseConnection, with_deadline
from db_session_mcp.core.dialect import confirm_dialect, resolve_dialect
from db_session_mcp.errors import QueryExecutionError
from db_session_mcp.models.database import DBInfo
from db_session_mcp.models.query import ExplainPlan
from db_session_mcp.models.session import DEFAULT_SCHEMA
from db_session_mcp.models.table import TableDescription, TableEntry, TableStats
from db_session_mcp.utils.log import log_database_operation
from db_session_mcp.utils.serialization import dumps, loads, render_value

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Deadlines in seconds
METADATA_TIMEOUT = 10.0
ANALYSIS_TIMEOUT = 15.0


def strip_explain(query: str) -> str:
    """Drop a leading EXPLAIN keyword so the statement is not explained twice."""
    query = query.strip()
    if query.lower().startswith("explain"):
        parts = query.split(" ", 1)
        if len(parts) > 1:
            return parts[1].strip()
    return query


def render_plan(columns: list[str], rows: list[tuple]) -> str:
    """
    Render EXPLAIN output as text.

    Single-column results contribute bare values, wider ones
    ``col: value | col: value`` lines. A plan that parses as JSON is
    pretty-printed.
    """
    lines = []
    for row in rows:
        values = [render_value(v) for v in row]
        if len(columns) == 1:
            lines.append(" | ".join(values))
        else:
            lines.append(
                " | ".join(f"{col}: {val}" for col, val in zip(columns, values))
            )
    plan = "\n".join(lines)

    if plan.strip().startswith(("[", "{")):
        try:
            plan = dumps(loads(plan), indent=True)
        except ValueError:
            pass  # Not JSON after all; keep the raw text
    return plan


class MetadataInspector:
    """Dialect-bridging introspection for one connection."""

    def __init__(self, connection: DatabaseConnection):
        """
        Initialize metadata inspector.

        Args:
            connection: The session's database connection
        """
        self.connection = connection

    async def _run_with_fallback(
        self, operation: str, action: Callable[[BaseAdapter], Awaitable[T]]
    ) -> T:
        """
        Run an action under the primary dialect, then under the other one.

        Raises:
            QueryExecutionError: Naming the operation and the error of the last
                attempt when both dialects fail
        """
        primary = await resolve_dialect(self.connection)
        last_error: Optional[QueryExecutionError] = None

        for dialect in (primary, primary.other):
            try:
                result = await action(get_adapter(dialect))
            except QueryExecutionError as e:
                logger.debug(f"{operation} failed as {dialect.value}: {e}")
                last_error = e
                continue
            await confirm_dialect(self.connection, dialect)
            return result

        assert last_error is not None
        raise QueryExecutionError(
            f"failed to {operation}: {last_error.message}", last_error
        )

    async def resolve_schema(
        self, schema: Optional[str], fallback: str = DEFAULT_SCHEMA
    ) -> str:
        """
        Pick the schema an operation targets.

        An explicit schema wins. Otherwise MySQL's current database is used;
        where ``SELECT DATABASE()`` fails (Postgres) or returns NULL the
        fallback applies.
        """
        if schema:
            return schema
        try:
            current = (await self.connection.fetch("SELECT DATABASE()")).scalar()
        except QueryExecutionError:
            return fallback
        return as_text(current) if current is not None else fallback

    async def list_tables(self, schema: Optional[str] = None) -> list[TableEntry]:
        """
        List tables and views.

        Args:
            schema: Only this schema; None lists every non-system schema

        Returns:
            Entries ordered by table name
        """

        async def action(adapter: BaseAdapter) -> list[TableEntry]:
            sql, params = adapter.list_tables_query(schema)
            result = await self.connection.fetch(sql, params)
            return [
                TableEntry(
                    name=as_text(row[0]),
                    schema=as_text(row[1]),
                    type=normalize_table_type(as_text(row[2])),
                )
                for row in result.rows
            ]

        tables = await with_deadline(
            self._run_with_fallback("list tables", action),
            METADATA_TIMEOUT,
            "list_tables",
        )
        if not schema:
            # A Postgres listing can still carry MySQL-named schemas and vice versa
            tables = [t for t in tables if t.schema not in SYSTEM_SCHEMAS]
        return tables

    async def describe_table(
        self,
        table_name: str,
        schema: Optional[str] = None,
        fallback_schema: str = DEFAULT_SCHEMA,
    ) -> TableDescription:
        """
        Describe a table's columns and indexes.

        Columns and indexes each get their own dialect fallback.

        Args:
            table_name: Table to describe
            schema: Schema name; resolved from the connection when omitted
            fallback_schema: Schema used when nothing else can be determined

        Returns:
            Columns in ordinal order and indexes by name
        """
        return await with_deadline(
            self._describe(table_name, schema, fallback_schema),
            METADATA_TIMEOUT,
            "describe_table",
        )

    async def _describe(
        self, table_name: str, schema: Optional[str], fallback_schema: str
    ) -> TableDescription:
        schema = await self.resolve_schema(schema, fallback_schema)
        label = f"DESCRIBE {schema}.{table_name}"
        conn = self.connection

        try:
            columns = await self._run_with_fallback(
                "get columns",
                lambda adapter: adapter.get_columns(conn, table_name, schema),
            )
            indexes = await self._run_with_fallback(
                "get indexes",
                lambda adapter: adapter.get_indexes(conn, table_name, schema),
            )
        except QueryExecutionError as e:
            log_database_operation("DESCRIBE_TABLE", label, error=e)
            raise

        log_database_operation("DESCRIBE_TABLE", label, len(columns))
        return TableDescription(columns=columns, indexes=indexes)

    async def analyze_table(
        self,
        table_name: str,
        schema: Optional[str] = None,
        fallback_schema: str = DEFAULT_SCHEMA,
    ) -> TableStats:
        """
        Collect table statistics.

        Only a failed row count fails a dialect attempt; sizes, analysis
        time and column nullability degrade to placeholders.
        """

        async def run() -> TableStats:
            resolved = await self.resolve_schema(schema, fallback_schema)
            return await self._run_with_fallback(
                "analyze table",
                lambda adapter: adapter.get_table_stats(
                    self.connection, table_name, resolved
                ),
            )

        return await with_deadline(run(), ANALYSIS_TIMEOUT, "analyze_table")

    async def get_db_info(self) -> DBInfo:
        """Database name, version, user schemas and table count."""
        return await with_deadline(
            self._run_with_fallback(
                "get database info",
                lambda adapter: adapter.get_database_info(self.connection),
            ),
            METADATA_TIMEOUT,
            "get_db_info",
        )

    async def explain_query(self, query: str) -> ExplainPlan:
        """
        Explain a statement without executing it.

        The Postgres and MySQL EXPLAIN forms are tried in a fixed order,
        independent of the detected dialect.

        Raises:
            ForbiddenOperation: If the statement matches the denylist
            QueryExecutionError: If every EXPLAIN form fails
        """
        check_forbidden(query)
        statement = strip_explain(query)
        variants = PostgresAdapter().explain_variants(
            statement
        ) + MySQLAdapter().explain_variants(statement)
        return await with_deadline(
            self._explain(variants), ANALYSIS_TIMEOUT, "explain_query"
        )

    async def _explain(self, variants: list[str]) -> ExplainPlan:
        last_error: Optional[QueryExecutionError] = None
        for sql in variants:
            try:
                result = await self.connection.fetch_raw(sql)
            except QueryExecutionError as e:
                logger.debug(f"EXPLAIN variant failed: {e}")
                last_error = e
                continue
            return ExplainPlan(plan=render_plan(result.columns, result.rows))

        assert last_error is not None
        raise QueryExecutionError(
            f"failed to explain query: {last_error.message}", last_error
        )
