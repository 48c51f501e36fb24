"""Utility modules for the database MCP server."""

from db_session_mcp.utils.serialization import (
    ValueKind,
    convert_value,
    dumps,
    marshal_row,
    marshal_rows,
    render_value,
    value_kind,
)

__all__ = [
    "ValueKind",
    "convert_value",
    "dumps",
    "marshal_row",
    "marshal_rows",
    "render_value",
    "value_kind",
]
