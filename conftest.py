"""Pytest configuration for db-session-mcp tests.

This module provides global pytest configuration and custom warning filters.
"""

import warnings

# TableEntry has a 'schema' field, which shadows a BaseModel attribute
warnings.filterwarnings(
    "ignore",
    message=r".*Field name \"schema\".*shadows an attribute.*",
    category=UserWarning,
)
