"""Gated execution of client-supplied SQL."""

from db_session_mcp.core.classifier import (
    classify,
    normalize,
    require_prefix,
    statement_operation,
)
from db_session_mcp.core.connection import DatabaseConnection, with_deadline
from db_session_mcp.errors import ReadOnlyViolation, WrongQueryKindForTool
from db_session_mcp.models.query import ExecuteResult, RowSet
from db_session_mcp.utils.log import log_database_operation
from db_session_mcp.utils.serialization import marshal_rows

# Deadlines in seconds
EXECUTE_SELECT_TIMEOUT = 5.0
QUERY_TIMEOUT = 30.0


class QueryExecutor:
    """Runs select, show and write statements against one connection."""

    def __init__(self, connection: DatabaseConnection, read_only: bool = False):
        """
        Initialize query executor.

        Args:
            connection: The session's database connection
            read_only: Reject every statement classified as a write
        """
        self.connection = connection
        self.read_only = read_only

    async def select(self, query: str, timeout: float = QUERY_TIMEOUT) -> RowSet:
        """
        Run a SELECT statement and marshal every row.

        Args:
            query: Statement starting with ``select``
            timeout: Deadline in seconds

        Returns:
            Columns in driver order and the marshaled rows

        Raises:
            WrongQueryKindForTool: If the statement is not a SELECT
            ForbiddenOperation: If it matches the denylist
            QueryExecutionError: If the database rejects it or the deadline expires
            ScanOrMarshalError: If a row cannot be marshaled
        """
        require_prefix(query, "select")
        classify(query, self.read_only)
        return await self._read("SELECT", query, timeout)

    async def show(self, query: str, timeout: float = QUERY_TIMEOUT) -> RowSet:
        """Run a SHOW statement and marshal every row."""
        require_prefix(query, "show")
        classify(query, self.read_only)
        return await self._read("SHOW", query, timeout)

    async def execute(self, query: str, timeout: float = QUERY_TIMEOUT) -> ExecuteResult:
        """
        Run a write statement in its own committed transaction.

        Args:
            query: Any statement other than a SELECT
            timeout: Deadline in seconds

        Returns:
            Rows affected (0 when the driver does not report a count) and a
            summary message naming the operation

        Raises:
            WrongQueryKindForTool: If the statement is a SELECT
            ReadOnlyViolation: In read-only mode, whatever the statement
            ForbiddenOperation: If it matches the denylist
            QueryExecutionError: If the database rejects it or the deadline expires
        """
        if normalize(query).startswith("select"):
            raise WrongQueryKindForTool("use execute_select tool for SELECT queries")
        if self.read_only:
            raise ReadOnlyViolation()
        classify(query, self.read_only)

        operation = statement_operation(query)
        try:
            rows_affected = await with_deadline(
                self.connection.execute_raw(query), timeout, "query"
            )
        except Exception as e:
            log_database_operation(operation, query, error=e)
            raise

        log_database_operation(operation, query, rows_affected)
        message = f"{operation} operation completed successfully"
        if rows_affected > 0:
            message += f" ({rows_affected} rows affected)"
        return ExecuteResult(rows_affected=rows_affected, message=message)

    async def _read(self, operation: str, query: str, timeout: float) -> RowSet:
        try:
            result = await with_deadline(
                self.connection.fetch_raw(query), timeout, "query"
            )
            rows = marshal_rows(result.columns, result.rows)
        except Exception as e:
            log_database_operation(operation, query, error=e)
            raise

        log_database_operation(operation, query, len(rows))
        return RowSet(columns=result.columns, rows=rows)
