"""Per-session connection state."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from db_session_mcp.core.connection import DatabaseConnection

DEFAULT_SCHEMA = "public"


@dataclass
class SessionState:
    """Connection and schema context bound to one session identifier.

    Mutated in place when the session switches connections.
    """

    session_id: str
    connection: Optional["DatabaseConnection"] = None
    connection_name: Optional[str] = None
    current_schema: str = DEFAULT_SCHEMA

    @property
    def has_connection(self) -> bool:
        return self.connection is not None
