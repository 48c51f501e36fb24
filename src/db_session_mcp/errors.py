"""Error taxonomy for tool-call failures."""

from typing import Optional


class DatabaseMCPError(Exception):
    """Base exception for every failure reported back to the MCP client."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class NoActiveConnection(DatabaseMCPError):
    """The session has no database connection assigned."""

    def __init__(self, message: str = "no active DB connection in session"):
        super().__init__(message)


class ConnectionNotFound(DatabaseMCPError):
    """A named connection is not present in the registry."""

    def __init__(self, name: str):
        super().__init__(f"connection '{name}' not found")
        self.name = name


class ConnectionFailed(DatabaseMCPError):
    """Opening or pinging a database connection failed."""


class ReadOnlyViolation(DatabaseMCPError):
    """A write statement was submitted while the server is read-only."""

    def __init__(
        self, message: str = "read-only mode: write operations are not allowed"
    ):
        super().__init__(message)


class ForbiddenOperation(DatabaseMCPError):
    """The statement matches the destructive-operation denylist."""

    def __init__(self, pattern: str):
        super().__init__(f"dangerous operation detected: {pattern}")
        self.pattern = pattern


class WrongQueryKindForTool(DatabaseMCPError):
    """The statement kind does not match the tool it was sent to."""


class QueryExecutionError(DatabaseMCPError):
    """The database rejected a statement, or its deadline expired."""


class ScanOrMarshalError(DatabaseMCPError):
    """Driver rows could not be converted to the output representation."""


class ConfigurationError(DatabaseMCPError):
    """The connections configuration is missing or invalid."""
