"""Pooled database connection handle built on a SQLAlchemy async engine."""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncGenerator, Awaitable, Optional, TypeVar

from sqlalchemy import text
from sqlalchemy.engine.url import make_url
from sqlalchemy.exc import DBAPIError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from db_session_mcp.errors import ConnectionFailed, QueryExecutionError
from db_session_mcp.models.config import DatabaseConfig, connection_type_from_url
from db_session_mcp.models.dialect import Dialect

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class FetchResult:
    """Fully materialized result of one statement."""

    columns: list[str] = field(default_factory=list)
    rows: list[tuple[Any, ...]] = field(default_factory=list)

    def first(self) -> Optional[tuple[Any, ...]]:
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        row = self.first()
        return row[0] if row else None


def describe_error(error: BaseException) -> str:
    """Short driver-level message for an exception raised by SQLAlchemy."""
    if isinstance(error, DBAPIError) and error.orig is not None:
        return str(error.orig)
    return str(error) or type(error).__name__


async def with_deadline(awaitable: Awaitable[T], seconds: float, operation: str) -> T:
    """
    Await an operation under a deadline.

    Args:
        awaitable: Coroutine performing the database work
        seconds: Deadline in seconds
        operation: Operation name used in the timeout message

    Returns:
        The awaitable's result

    Raises:
        QueryExecutionError: If the deadline expires; the work is cancelled
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise QueryExecutionError(f"{operation} timed out after {seconds:g}s")


class DatabaseConnection:
    """Manages a SQLAlchemy async engine and its connection pool.

    One instance is shared by every tool call of a session. Each statement
    checks a connection out of the pool for its own duration, so a failed
    statement never affects the next one.
    """

    def __init__(self, config: DatabaseConfig, name: Optional[str] = None):
        """
        Initialize database connection.

        Args:
            config: Database configuration with connection URL and pool settings
            name: Registry name of the connection, if it came from the config file
        """
        self.config = config
        self.name = name
        self.engine: Optional[AsyncEngine] = None
        # Filled in by the dialect probe; fixed for this instance once set
        self.detected_dialect: Optional[Dialect] = None

    @classmethod
    async def open(
        cls, url: str, name: Optional[str] = None, **pool_options: Any
    ) -> "DatabaseConnection":
        """
        Create, initialize and ping a connection.

        Raises:
            ConnectionFailed: If the URL is invalid or the database is unreachable
        """
        try:
            config = DatabaseConfig(url=url, **pool_options)
        except ValueError as e:
            raise ConnectionFailed(f"invalid connection URL: {e}", e)

        connection = cls(config, name)
        await connection.initialize()
        try:
            await connection.ping()
        except ConnectionFailed:
            await connection.dispose()
            raise
        logger.debug(f"Opened connection to {connection.safe_url}")
        return connection

    async def initialize(self) -> None:
        """Create the async engine."""
        if self.engine is not None:
            return  # Already initialized

        url = self.config.url
        connect_args: dict[str, Any] = {}

        # asyncpg expects 'ssl' in connect_args, not sslmode in the URL
        if self.config.dialect == "postgresql" and self.config.driver == "asyncpg":
            url_obj = make_url(url)
            if "sslmode" in url_obj.query:
                sslmode = url_obj.query["sslmode"]
                if sslmode in ["require", "prefer", "allow", "verify-ca", "verify-full"]:
                    connect_args["ssl"] = sslmode
                elif sslmode == "disable":
                    connect_args["ssl"] = False
                url_obj = url_obj.difference_update_query(["sslmode"])
                url = url_obj.render_as_string(hide_password=False)

        self.engine = create_async_engine(
            url,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_recycle=self.config.pool_recycle,
            pool_pre_ping=True,  # Verify connections before using
            echo=self.config.echo_sql,
            connect_args=connect_args,
        )

    async def dispose(self) -> None:
        """Dispose of the connection pool and cleanup resources."""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None

    @asynccontextmanager
    async def get_connection(self) -> AsyncGenerator[AsyncConnection, None]:
        """
        Get a connection from the pool as an async context manager.

        Raises:
            RuntimeError: If engine not initialized
        """
        if self.engine is None:
            raise RuntimeError(
                "DatabaseConnection not initialized. Call initialize() first."
            )
        async with self.engine.connect() as conn:
            yield conn

    @property
    def is_initialized(self) -> bool:
        """Check if engine is initialized."""
        return self.engine is not None

    @property
    def safe_url(self) -> str:
        return self.config.safe_url

    @property
    def db_type(self) -> str:
        """Connection type (postgres, mysql) as named in the config file."""
        return connection_type_from_url(self.config.url)

    async def ping(self) -> None:
        """
        Verify the database answers.

        Raises:
            ConnectionFailed: If the database cannot be reached
        """
        try:
            async with self.get_connection() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError, RuntimeError, asyncio.TimeoutError) as e:
            raise ConnectionFailed(f"ping failed: {describe_error(e)}", e)

    async def fetch(
        self, sql: str, params: Optional[dict[str, Any]] = None
    ) -> FetchResult:
        """
        Run a statement with ``:name`` bind parameters and return all rows.

        Raises:
            QueryExecutionError: If the database rejects the statement
        """
        try:
            async with self.get_connection() as conn:
                result = await conn.execute(text(sql), params or {})
                return self._materialize(result)
        except (SQLAlchemyError, OSError) as e:
            raise QueryExecutionError(describe_error(e), e)

    async def fetch_raw(self, sql: str) -> FetchResult:
        """
        Run caller-supplied SQL verbatim and return all rows.

        The text is handed to the driver unchanged, so colons and percent
        signs in it are never treated as parameters.

        Raises:
            QueryExecutionError: If the database rejects the statement
        """
        try:
            async with self.get_connection() as conn:
                result = await conn.exec_driver_sql(sql)
                return self._materialize(result)
        except (SQLAlchemyError, OSError) as e:
            raise QueryExecutionError(describe_error(e), e)

    async def execute_raw(self, sql: str) -> int:
        """
        Run caller-supplied SQL in a committed transaction.

        Returns:
            Rows affected as reported by the driver (0 when unknown)

        Raises:
            QueryExecutionError: If the database rejects the statement
        """
        if self.engine is None:
            raise RuntimeError(
                "DatabaseConnection not initialized. Call initialize() first."
            )
        try:
            async with self.engine.begin() as conn:
                result = await conn.exec_driver_sql(sql)
                rowcount = result.rowcount
        except (SQLAlchemyError, OSError) as e:
            raise QueryExecutionError(describe_error(e), e)
        return rowcount if rowcount and rowcount > 0 else 0

    @staticmethod
    def _materialize(result: Any) -> FetchResult:
        if not result.returns_rows:
            return FetchResult()
        columns = list(result.keys())
        rows = [tuple(row) for row in result.fetchall()]
        return FetchResult(columns=columns, rows=rows)

    async def __aenter__(self) -> "DatabaseConnection":
        """Async context manager entry."""
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.dispose()
