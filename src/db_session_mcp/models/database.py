"""Database-level information model."""

from pydantic import BaseModel, Field


class DBInfo(BaseModel):
    """Summary of the database behind the active connection."""

    database_name: str = Field(..., description="Current database name")
    version: str = Field(..., description="Server product and version")
    schemas: list[str] = Field(
        default_factory=list, description="Non-system schemas/databases"
    )
    table_count: int = Field(..., description="Tables outside system schemas")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "database_name": "analytics",
                    "version": "PostgreSQL 16.2",
                    "schemas": ["public", "reporting"],
                    "table_count": 42,
                }
            ]
        }
    }
