"""PostgreSQL integration tests

Runs the executor and metadata inspector against a live database named by
PG_TEST_DATABASE_URL. Each test works on its own scratch table.

Run with: pytest tests/integration/test_postgresql.py -v -m postgresql
"""

import uuid

import pytest

from db_session_mcp.core.connection import DatabaseConnection
from db_session_mcp.core.executor import QueryExecutor
from db_session_mcp.core.inspector import MetadataInspector
from db_session_mcp.errors import QueryExecutionError, ReadOnlyViolation
from db_session_mcp.models.dialect import Dialect

pytestmark = [pytest.mark.postgresql, pytest.mark.integration]


@pytest.fixture
async def orders_table(pg_connection: DatabaseConnection):
    """Scratch table with two rows, dropped afterwards"""
    name = f"mcp_orders_{uuid.uuid4().hex[:8]}"
    await pg_connection.execute_raw(
        f"CREATE TABLE public.{name} ("
        "id serial PRIMARY KEY, "
        "customer text NOT NULL, "
        "total numeric(10, 2), "
        "note varchar(40))"
    )
    await pg_connection.execute_raw(
        f"CREATE UNIQUE INDEX {name}_customer_key ON public.{name} (customer)"
    )
    await pg_connection.execute_raw(
        f"INSERT INTO public.{name} (customer, total, note) "
        "VALUES ('alice', 19.90, NULL), ('bob', 5.00, 'gift')"
    )
    try:
        yield name
    finally:
        await pg_connection.execute_raw(f"DROP TABLE IF EXISTS public.{name}")


class TestPostgresIntrospection:
    @pytest.mark.asyncio
    async def test_list_tables(self, pg_connection, orders_table):
        inspector = MetadataInspector(pg_connection)
        tables = await inspector.list_tables("public")

        entry = next(t for t in tables if t.name == orders_table)
        assert entry.schema == "public"
        assert entry.type == "table"
        assert pg_connection.detected_dialect is Dialect.POSTGRES

        everything = await inspector.list_tables()
        assert orders_table in [t.name for t in everything]
        assert not any(t.schema == "pg_catalog" for t in everything)

    @pytest.mark.asyncio
    async def test_describe_table(self, pg_connection, orders_table):
        description = await MetadataInspector(pg_connection).describe_table(
            orders_table
        )

        assert [c.name for c in description.columns] == [
            "id",
            "customer",
            "total",
            "note",
        ]
        assert description.primary_key == ["id"]
        note = description.columns[3]
        assert note.is_nullable and note.char_max_length == 40
        assert description.columns[0].default_value.startswith("nextval(")

        indexes = {i.name: i for i in description.indexes}
        assert indexes[f"{orders_table}_pkey"].columns == ["id"]
        assert indexes[f"{orders_table}_customer_key"].is_unique

    @pytest.mark.asyncio
    async def test_analyze_table(self, pg_connection, orders_table):
        stats = await MetadataInspector(pg_connection).analyze_table(
            orders_table, "public"
        )

        assert stats.row_count == 2
        assert stats.total_size != "N/A"
        assert stats.column_stats == {
            "id": "Not Null",
            "customer": "Not Null",
            "total": "Nullable",
            "note": "Nullable",
        }

    @pytest.mark.asyncio
    async def test_db_info(self, pg_connection):
        info = await MetadataInspector(pg_connection).get_db_info()

        assert info.version.startswith("PostgreSQL ")
        assert "public" in info.schemas
        assert info.database_name

    @pytest.mark.asyncio
    async def test_explain_returns_json_plan(self, pg_connection, orders_table):
        result = await MetadataInspector(pg_connection).explain_query(
            f"EXPLAIN SELECT * FROM public.{orders_table} WHERE total > 1"
        )
        assert '"Plan"' in result.plan

    @pytest.mark.asyncio
    async def test_missing_table(self, pg_connection):
        with pytest.raises(QueryExecutionError, match="failed to analyze table"):
            await MetadataInspector(pg_connection).analyze_table(
                "no_such_table_here", "public"
            )


class TestPostgresExecution:
    @pytest.mark.asyncio
    async def test_select_marshals_values(self, pg_connection, orders_table):
        result = await QueryExecutor(pg_connection).select(
            f"SELECT customer, total, note FROM public.{orders_table} ORDER BY id"
        )

        assert result.columns == ["customer", "total", "note"]
        assert result.rows == [
            {"customer": "alice", "total": "19.90", "note": None},
            {"customer": "bob", "total": "5.00", "note": "gift"},
        ]

    @pytest.mark.asyncio
    async def test_select_text_is_verbatim(self, pg_connection):
        result = await QueryExecutor(pg_connection).select(
            "SELECT ':not_a_param' AS a, '100%' AS b"
        )
        assert result.rows == [{"a": ":not_a_param", "b": "100%"}]

    @pytest.mark.asyncio
    async def test_update_reports_rows_affected(self, pg_connection, orders_table):
        result = await QueryExecutor(pg_connection).execute(
            f"UPDATE public.{orders_table} SET note = 'checked'"
        )
        assert result.rows_affected == 2
        assert result.message == (
            "UPDATE operation completed successfully (2 rows affected)"
        )

    @pytest.mark.asyncio
    async def test_read_only_leaves_data_alone(self, pg_connection, orders_table):
        with pytest.raises(ReadOnlyViolation):
            await QueryExecutor(pg_connection, read_only=True).execute(
                f"DELETE FROM public.{orders_table}"
            )

        count = await QueryExecutor(pg_connection).select(
            f"SELECT COUNT(*) AS n FROM public.{orders_table}"
        )
        assert count.rows == [{"n": 2}]

    @pytest.mark.asyncio
    async def test_failed_statement_does_not_poison_connection(self, pg_connection):
        executor = QueryExecutor(pg_connection)
        with pytest.raises(QueryExecutionError):
            await executor.select("SELECT * FROM no_such_table_here")

        result = await executor.select("SELECT 1 AS one")
        assert result.rows == [{"one": 1}]
