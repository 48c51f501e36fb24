"""Unit tests for the dialect probe and its per-connection cache."""

import pytest
from fakes import FakeConnection, rows

from db_session_mcp.adapters import MySQLAdapter, PostgresAdapter, get_adapter
from db_session_mcp.core.dialect import (
    CANARY_QUERY,
    confirm_dialect,
    probe,
    remember_dialect,
    resolve_dialect,
)
from db_session_mcp.errors import QueryExecutionError
from db_session_mcp.models.dialect import Dialect


def postgres_like() -> FakeConnection:
    return FakeConnection([("pg_catalog.pg_namespace", rows(["?column?"], (1,)))])


def mysql_like() -> FakeConnection:
    return FakeConnection(
        [("pg_catalog", QueryExecutionError("Unknown database 'pg_catalog'"))]
    )


class TestProbe:
    @pytest.mark.asyncio
    async def test_canary_success_means_postgres(self):
        conn = postgres_like()
        assert await probe(conn) is Dialect.POSTGRES
        assert conn.statements == [CANARY_QUERY]

    @pytest.mark.asyncio
    async def test_canary_failure_means_mysql(self):
        assert await probe(mysql_like()) is Dialect.MYSQL

    @pytest.mark.asyncio
    async def test_any_failure_routes_to_mysql(self):
        conn = FakeConnection([("pg_catalog", QueryExecutionError("connection reset"))])
        assert await probe(conn) is Dialect.MYSQL

    def test_canary_does_not_succeed_on_mysql(self):
        # MySQL also has information_schema; the canary must need pg_catalog
        assert "pg_catalog" in CANARY_QUERY


class TestResolveDialect:
    @pytest.mark.asyncio
    async def test_postgres_is_cached_on_first_probe(self):
        conn = postgres_like()
        assert await resolve_dialect(conn) is Dialect.POSTGRES
        assert await resolve_dialect(conn) is Dialect.POSTGRES

        assert conn.detected_dialect is Dialect.POSTGRES
        assert len(conn.statements) == 1

    @pytest.mark.asyncio
    async def test_mysql_assumption_is_not_cached(self):
        conn = mysql_like()
        assert await resolve_dialect(conn) is Dialect.MYSQL
        assert conn.detected_dialect is None

        await resolve_dialect(conn)
        assert len(conn.statements) == 2

    @pytest.mark.asyncio
    async def test_cached_dialect_skips_probe(self):
        conn = FakeConnection(detected_dialect=Dialect.MYSQL)
        assert await resolve_dialect(conn) is Dialect.MYSQL
        assert conn.statements == []

    @pytest.mark.asyncio
    async def test_cache_is_per_connection(self):
        pg, my = postgres_like(), mysql_like()
        await resolve_dialect(pg)
        await resolve_dialect(my)

        assert pg.detected_dialect is Dialect.POSTGRES
        assert my.detected_dialect is None


class TestRememberDialect:
    def test_first_value_wins(self):
        conn = FakeConnection()
        remember_dialect(conn, Dialect.MYSQL)
        remember_dialect(conn, Dialect.POSTGRES)
        assert conn.detected_dialect is Dialect.MYSQL


class TestConfirmDialect:
    @pytest.mark.asyncio
    async def test_answering_canary_fixes_postgres(self):
        # A query valid in both families succeeded on the MySQL attempt
        conn = postgres_like()
        await confirm_dialect(conn, Dialect.MYSQL)
        assert conn.detected_dialect is Dialect.POSTGRES

    @pytest.mark.asyncio
    async def test_second_canary_failure_fixes_mysql(self):
        conn = mysql_like()
        await confirm_dialect(conn, Dialect.MYSQL)

        assert conn.detected_dialect is Dialect.MYSQL
        assert conn.statements == [CANARY_QUERY]

    @pytest.mark.asyncio
    async def test_postgres_success_without_canary_fixes_nothing(self):
        conn = mysql_like()
        await confirm_dialect(conn, Dialect.POSTGRES)
        assert conn.detected_dialect is None

    @pytest.mark.asyncio
    async def test_known_dialect_is_not_checked_again(self):
        conn = FakeConnection(detected_dialect=Dialect.POSTGRES)
        await confirm_dialect(conn, Dialect.MYSQL)

        assert conn.detected_dialect is Dialect.POSTGRES
        assert conn.statements == []


class TestGetAdapter:
    def test_selects_strategy(self):
        assert isinstance(get_adapter(Dialect.POSTGRES), PostgresAdapter)
        assert isinstance(get_adapter(Dialect.MYSQL), MySQLAdapter)
        assert isinstance(get_adapter("mysql"), MySQLAdapter)

    def test_other_dialect(self):
        assert Dialect.POSTGRES.other is Dialect.MYSQL
        assert Dialect.MYSQL.other is Dialect.POSTGRES
