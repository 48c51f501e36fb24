"""Pytest configuration and shared fixtures for db-session-mcp tests"""

import os
import sys
from typing import AsyncGenerator, Optional

import pytest
from dotenv import load_dotenv
from fakes import FakeConnection

from db_session_mcp.core.connection import DatabaseConnection
from db_session_mcp.errors import ConnectionFailed

# Load environment variables
load_dotenv()

# Fix for Windows: asyncpg requires SelectorEventLoop on Windows
if sys.platform == "win32":
    import asyncio

    asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())  # type: ignore[attr-defined]


@pytest.fixture
def fake_connection() -> FakeConnection:
    """Empty scripted connection"""
    return FakeConnection()


@pytest.fixture
def unreachable() -> ConnectionFailed:
    return ConnectionFailed("ping failed: connection refused")


# ==================== Configuration Fixtures ====================


@pytest.fixture(scope="session")
def pg_database_url() -> Optional[str]:
    """PostgreSQL test database URL from environment"""
    return os.getenv("PG_TEST_DATABASE_URL")


@pytest.fixture(scope="session")
def mysql_database_url() -> Optional[str]:
    """MySQL test database URL from environment"""
    return os.getenv("MYSQL_TEST_DATABASE_URL")


# ==================== Live database Fixtures ====================


@pytest.fixture
async def pg_connection(
    pg_database_url: Optional[str],
) -> AsyncGenerator[DatabaseConnection, None]:
    """PostgreSQL database connection with proper cleanup"""
    if not pg_database_url:
        pytest.skip("PG_TEST_DATABASE_URL not set in environment")
    connection = await DatabaseConnection.open(pg_database_url, name="pg-test")
    try:
        yield connection
    finally:
        await connection.dispose()


@pytest.fixture
async def mysql_connection(
    mysql_database_url: Optional[str],
) -> AsyncGenerator[DatabaseConnection, None]:
    """MySQL database connection with proper cleanup"""
    if not mysql_database_url:
        pytest.skip("MYSQL_TEST_DATABASE_URL not set in environment")
    connection = await DatabaseConnection.open(mysql_database_url, name="mysql-test")
    try:
        yield connection
    finally:
        await connection.dispose()


def pytest_configure(config):
    """Register custom markers"""
    config.addinivalue_line("markers", "postgresql: PostgreSQL-specific tests")
    config.addinivalue_line("markers", "mysql: MySQL-specific tests")
    config.addinivalue_line(
        "markers", "integration: Integration tests requiring database"
    )
