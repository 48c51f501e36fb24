"""Logging setup and consistent messages for tool, query and connection events."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional

logger = logging.getLogger("db_session_mcp")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
MAX_LOGGED_QUERY = 100


def configure_logging(
    level: str = "INFO",
    output_file: Optional[str] = None,
    max_size_mb: int = 10,
    console: bool = True,
) -> None:
    """
    Configure root logging for the server process.

    Console output goes to stderr because stdout carries the MCP protocol.

    Args:
        level: Log level name (DEBUG, INFO, WARN/WARNING, ERROR)
        output_file: Optional log file, rotated once it reaches max_size_mb
        max_size_mb: Rotation threshold in megabytes
        console: Whether to log to stderr
    """
    handlers: list[logging.Handler] = []
    if console:
        handlers.append(logging.StreamHandler(sys.stderr))

    if output_file:
        path = Path(output_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                path, maxBytes=max_size_mb * 1024 * 1024, backupCount=3
            )
        )

    if not handlers:
        handlers.append(logging.NullHandler())

    logging.basicConfig(
        level=parse_level(level), format=LOG_FORMAT, handlers=handlers, force=True
    )


def parse_level(level: str) -> int:
    """Map a level name to a logging level; unknown names mean INFO."""
    name = (level or "").strip().upper()
    if name == "WARN":
        name = "WARNING"
    value = logging.getLevelName(name)
    return value if isinstance(value, int) else logging.INFO


def _shorten(query: str) -> str:
    if len(query) > MAX_LOGGED_QUERY:
        return query[:MAX_LOGGED_QUERY] + "..."
    return query


def log_tool_call(tool_name: str, error: Optional[BaseException] = None) -> None:
    if error is not None:
        logger.error(f"Tool call failed: {tool_name}: {error}")
    else:
        logger.info(f"Tool call completed: {tool_name}")


def log_database_operation(
    operation: str,
    query: str,
    rows: int = 0,
    error: Optional[BaseException] = None,
) -> None:
    """Log the outcome of a statement; the query text is cut to 100 characters."""
    short = _shorten(query)
    if error is not None:
        logger.error(f"{operation} operation failed: {short}: {error}")
    elif rows > 0:
        logger.info(f"{operation} operation completed: {short} ({rows} rows affected)")
    else:
        logger.info(f"{operation} operation completed: {short}")


def log_connection_event(
    event: str,
    connection_name: str,
    db_type: str,
    error: Optional[BaseException] = None,
) -> None:
    if error is not None:
        logger.error(
            f"Connection event failed: {event} to {connection_name} ({db_type}): {error}"
        )
    else:
        logger.info(f"Connection event completed: {event} to {connection_name} ({db_type})")
