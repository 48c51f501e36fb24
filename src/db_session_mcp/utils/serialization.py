"""Result marshaling: driver rows to JSON-safe records, rendered with orjson.

Each driver value is classified into a small tagged union before conversion:

- NULL    → ``None`` (kept distinct from the empty string)
- STRING  → ``str``; byte strings are decoded as UTF-8 text
- NUMBER  → ``int`` / ``float``; ``Decimal`` becomes a string to keep precision
- BOOLEAN → ``bool``
- OPAQUE  → anything else (timestamps, UUIDs, intervals, arrays, ...) rendered
  through a type-specific rule, falling back to ``str()``
"""

import base64
import datetime
import decimal
import ipaddress
import math
import uuid
from enum import Enum
from typing import Any, Sequence

import orjson

from db_session_mcp.errors import ScanOrMarshalError


class ValueKind(str, Enum):
    """Tag of a marshaled result value."""

    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OPAQUE = "opaque"


def value_kind(value: Any) -> ValueKind:
    """Classify a driver value by runtime inspection."""
    if value is None:
        return ValueKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (str, bytes, bytearray, memoryview)):
        return ValueKind.STRING
    if isinstance(value, (int, float, decimal.Decimal)):
        return ValueKind.NUMBER
    return ValueKind.OPAQUE


def decode_bytes(data: bytes) -> str:
    """Decode a byte string as UTF-8, falling back to base64 for binary data."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return base64.b64encode(data).decode("ascii")


def _convert_number(value: Any) -> Any:
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    return value


def _convert_opaque(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()

    # timedelta - convert to total seconds
    if isinstance(value, datetime.timedelta):
        return value.total_seconds()

    if isinstance(value, uuid.UUID):
        return str(value)

    if isinstance(
        value,
        (
            ipaddress.IPv4Address,
            ipaddress.IPv6Address,
            ipaddress.IPv4Network,
            ipaddress.IPv6Network,
        ),
    ):
        return str(value)

    if isinstance(value, dict):
        return {str(k): convert_value(v) for k, v in value.items()}

    if isinstance(value, (list, tuple, set, frozenset)):
        return [convert_value(v) for v in value]

    return str(value)


def convert_value(value: Any) -> Any:
    """
    Convert one driver value to its JSON-safe representation.

    Args:
        value: Value as returned by the database driver

    Returns:
        JSON-serializable value
    """
    kind = value_kind(value)
    if kind is ValueKind.NULL:
        return None
    if kind is ValueKind.BOOLEAN:
        return value
    if kind is ValueKind.STRING:
        if isinstance(value, str):
            return value
        return decode_bytes(bytes(value))
    if kind is ValueKind.NUMBER:
        return _convert_number(value)
    return _convert_opaque(value)


def marshal_row(columns: Sequence[str], row: Sequence[Any]) -> dict[str, Any]:
    """
    Convert one driver row to a record keyed by column name.

    Args:
        columns: Column names in driver order
        row: Row values in the same order

    Returns:
        Dictionary preserving the driver's column order

    Raises:
        ScanOrMarshalError: If the row width does not match the columns
    """
    values = tuple(row)
    if len(values) != len(columns):
        raise ScanOrMarshalError(
            f"scan error: row has {len(values)} values for {len(columns)} columns"
        )
    return {column: convert_value(value) for column, value in zip(columns, values)}


def marshal_rows(
    columns: Sequence[str], rows: Sequence[Sequence[Any]]
) -> list[dict[str, Any]]:
    """
    Convert a fully materialized result set to ordered records.

    Args:
        columns: Column names in driver order
        rows: Result rows

    Returns:
        List of dictionaries with JSON-serializable values
    """
    return [marshal_row(columns, row) for row in rows]


def render_value(value: Any) -> str:
    """Render a value as display text (``NULL`` for SQL NULL)."""
    converted = convert_value(value)
    if converted is None:
        return "NULL"
    if isinstance(converted, str):
        return converted
    if isinstance(converted, (dict, list)):
        return dumps(converted)
    return str(converted)


def _default_handler(obj: Any) -> Any:
    """Fallback for types orjson cannot serialize natively."""
    return convert_value(obj)


def dumps(obj: Any, indent: bool = False) -> str:
    """
    Serialize object to JSON string using orjson.

    Args:
        obj: Object to serialize
        indent: Pretty-print with two-space indentation

    Returns:
        JSON string
    """
    option = orjson.OPT_INDENT_2 if indent else 0
    return orjson.dumps(obj, default=_default_handler, option=option).decode("utf-8")


def loads(data: str) -> Any:
    """Parse a JSON string with orjson."""
    return orjson.loads(data)
