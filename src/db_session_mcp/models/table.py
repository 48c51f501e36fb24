"""Table, column and index information models."""

import warnings
from typing import Optional

from pydantic import BaseModel, Field

# Suppress the specific warning about field 'schema' shadowing
warnings.filterwarnings(
    "ignore",
    message='Field name "schema" in "TableEntry" shadows an attribute in parent',
    category=UserWarning,
)


class TableEntry(BaseModel):
    """One row of a table listing."""

    name: str = Field(..., description="Table name")
    schema: str = Field(..., description="Schema containing the table")
    type: str = Field(..., description="Normalized table type (table, view, ...)")


class ColumnInfo(BaseModel):
    """Information about a table column."""

    name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Data type of the column")
    is_nullable: bool = Field(..., description="Whether the column accepts NULL")
    is_primary_key: bool = Field(
        default=False, description="Whether the column is part of the primary key"
    )
    default_value: Optional[str] = Field(
        None, description="Default value expression, if any"
    )
    char_max_length: Optional[int] = Field(
        None, description="Maximum length for character types"
    )


class IndexInfo(BaseModel):
    """Information about a table index."""

    name: str = Field(..., description="Index name")
    columns: list[str] = Field(..., description="Indexed column names in key order")
    is_unique: bool = Field(default=False, description="Whether the index is unique")


class TableDescription(BaseModel):
    """Columns and indexes of one table."""

    columns: list[ColumnInfo] = Field(default_factory=list)
    indexes: list[IndexInfo] = Field(default_factory=list)

    @property
    def primary_key(self) -> list[str]:
        """Names of the primary-key columns."""
        return [c.name for c in self.columns if c.is_primary_key]


class TableStats(BaseModel):
    """Size and freshness statistics for one table.

    Size and analysis fields hold display strings; ``"N/A"`` marks a figure
    that could not be read.
    """

    table_name: str = Field(..., description="Table name")
    row_count: int = Field(..., description="Exact row count from COUNT(*)")
    total_size: str = Field(default="N/A", description="Table plus index size")
    table_size: str = Field(default="N/A", description="Heap size")
    index_size: str = Field(default="N/A", description="Index size")
    last_analyzed: str = Field(default="N/A", description="Last ANALYZE time")
    column_stats: dict[str, str] = Field(
        default_factory=dict, description="Nullability of up to five columns"
    )

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "table_name": "orders",
                    "row_count": 1520,
                    "total_size": "256 kB",
                    "table_size": "176 kB",
                    "index_size": "80 kB",
                    "last_analyzed": "2024-03-01 12:00:00 (auto)",
                    "column_stats": {"id": "Not Null", "note": "Nullable"},
                }
            ]
        }
    }
