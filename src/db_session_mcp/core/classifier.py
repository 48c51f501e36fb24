"""Lexical classification and gating of SQL text.

Classification looks only at the leading keyword and at substrings of the
lower-cased text. Comments, string literals and multi-statement batches are
not parsed.
"""

from enum import Enum

from db_session_mcp.errors import (
    ForbiddenOperation,
    ReadOnlyViolation,
    WrongQueryKindForTool,
)

READ_PREFIXES = ("select", "show")

# Rejected regardless of read-only mode
FORBIDDEN_PATTERNS = ("drop database", "drop schema", "truncate")

_OPERATIONS = ("insert", "update", "delete", "create", "alter", "drop")


class QueryIntent(str, Enum):
    """Whether a statement reads or writes."""

    READ = "read"
    WRITE = "write"


def normalize(sql: str) -> str:
    """Trim and lower-case SQL text for prefix matching."""
    return sql.strip().lower()


def check_forbidden(sql: str) -> None:
    """
    Reject statements matching the destructive-operation denylist.

    Raises:
        ForbiddenOperation: Naming the first matching pattern
    """
    lowered = normalize(sql)
    for pattern in FORBIDDEN_PATTERNS:
        if pattern in lowered:
            raise ForbiddenOperation(pattern)


def classify(sql: str, read_only: bool) -> QueryIntent:
    """
    Classify a statement and apply the safety policy.

    Args:
        sql: Statement text as submitted by the client
        read_only: Whether the server rejects writes

    Returns:
        QueryIntent.READ for ``select``/``show`` statements, WRITE otherwise

    Raises:
        ReadOnlyViolation: A WRITE statement while read-only
        ForbiddenOperation: The statement matches the denylist
    """
    lowered = normalize(sql)
    intent = QueryIntent.READ if lowered.startswith(READ_PREFIXES) else QueryIntent.WRITE

    if read_only and intent is QueryIntent.WRITE:
        raise ReadOnlyViolation()
    check_forbidden(lowered)
    return intent


def require_prefix(sql: str, prefix: str) -> None:
    """
    Require a statement to start with the keyword its tool accepts.

    Raises:
        WrongQueryKindForTool: If the statement starts with anything else
    """
    if not normalize(sql).startswith(prefix):
        raise WrongQueryKindForTool(f"only {prefix.upper()} queries are allowed")


def statement_operation(sql: str) -> str:
    """Operation label for a write statement, ``QUERY`` when unrecognized."""
    lowered = normalize(sql)
    for operation in _OPERATIONS:
        if lowered.startswith(operation):
            return operation.upper()
    return "QUERY"
