"""Dialect probe: decide whether a connection speaks Postgres or MySQL.

Only two families are supported, so detection is a single canary query
rather than a registry of dialects: if the Postgres catalog answers, the
connection is Postgres-family, otherwise MySQL-family is assumed.
"""

import logging
from typing import Optional, Protocol

from db_session_mcp.errors import QueryExecutionError
from db_session_mcp.models.dialect import Dialect

logger = logging.getLogger(__name__)

# Fails on MySQL, which has no pg_catalog schema
CANARY_QUERY = (
    "SELECT 1 FROM pg_catalog.pg_namespace "
    "WHERE nspname = 'information_schema' LIMIT 1"
)


class ProbeTarget(Protocol):
    """What the probe needs from a connection."""

    detected_dialect: Optional[Dialect]

    async def fetch(self, sql: str, params=None): ...


async def probe(connection: ProbeTarget) -> Dialect:
    """
    Run the canary query and infer the dialect family.

    Any query failure, including one unrelated to dialect such as a dropped
    network connection, routes to MySQL-family; the real error then surfaces
    from the MySQL-family query that follows.

    Args:
        connection: Connection to probe

    Returns:
        Dialect.POSTGRES if the canary succeeds, Dialect.MYSQL otherwise
    """
    try:
        await connection.fetch(CANARY_QUERY)
    except QueryExecutionError as e:
        logger.debug(f"Postgres canary failed, assuming MySQL family: {e}")
        return Dialect.MYSQL
    return Dialect.POSTGRES


async def resolve_dialect(connection: ProbeTarget) -> Dialect:
    """
    Return the connection's dialect, probing only when it is not yet known.

    A successful canary fixes the dialect for the connection immediately; a
    MySQL assumption is fixed by ``confirm_dialect`` once a MySQL-family query
    has succeeded and the canary has failed a second time.
    """
    if connection.detected_dialect is not None:
        return connection.detected_dialect

    dialect = await probe(connection)
    if dialect is Dialect.POSTGRES:
        remember_dialect(connection, dialect)
    return dialect


def remember_dialect(connection: ProbeTarget, dialect: Dialect) -> None:
    """Fix the connection's dialect, unless one is already fixed."""
    if connection.detected_dialect is None:
        connection.detected_dialect = dialect
        logger.info(f"Detected {dialect.value} dialect")


async def confirm_dialect(connection: ProbeTarget, succeeded: Dialect) -> None:
    """
    Fix the dialect after a query succeeded under ``succeeded``.

    Some catalog queries are valid in both families, so a success alone does
    not identify the dialect. The canary runs again: if it answers, the
    connection is Postgres; if it fails again, a MySQL success is trusted.
    A Postgres success next to a failing canary fixes nothing.
    """
    if connection.detected_dialect is not None:
        return

    probed = await probe(connection)
    if probed is Dialect.POSTGRES:
        remember_dialect(connection, Dialect.POSTGRES)
    elif succeeded is Dialect.MYSQL:
        remember_dialect(connection, Dialect.MYSQL)
