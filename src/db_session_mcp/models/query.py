"""Query execution, explain plan and connection tool result models."""

from typing import Any

from pydantic import BaseModel, Field


class RowSet(BaseModel):
    """Columns and marshaled rows returned by a read statement."""

    columns: list[str] = Field(default_factory=list, description="Column order")
    rows: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)


class SelectResult(BaseModel):
    """Output of ``execute_select``."""

    results: list[dict[str, Any]] = Field(..., description="Result rows")
    message: str = Field(..., description="Summary message")


class DataResult(BaseModel):
    """Output of ``select_query`` and ``show_query``."""

    data: list[dict[str, Any]] = Field(..., description="Result rows")
    message: str = Field(..., description="Summary message")


class ExecuteResult(BaseModel):
    """Output of ``execute_query``."""

    rows_affected: int = Field(..., description="Rows changed by the statement")
    message: str = Field(..., description="Summary message")


class ExplainPlan(BaseModel):
    """Query execution plan from EXPLAIN."""

    plan: str = Field(..., description="Plan text, pretty-printed when JSON")


class ConnectionInfo(BaseModel):
    """A configured connection as shown to clients (no URL)."""

    name: str = Field(..., description="Connection name")
    display_name: str = Field(..., description="Human-readable connection name")
    type: str = Field(..., description="Database type (postgres, mysql)")
    description: str = Field("", description="Connection description")


class ConnectionList(BaseModel):
    """Output of ``list_connections``."""

    connections: list[ConnectionInfo] = Field(default_factory=list)
    default_connection: str = Field("", description="Default connection name")


class SwitchResult(BaseModel):
    """Output of ``switch_connection``."""

    message: str
    connection: str


class ConnectionTestResult(BaseModel):
    """Output of ``test_connection``; failures are reported, never raised."""

    success: bool
    message: str
    connection: str
