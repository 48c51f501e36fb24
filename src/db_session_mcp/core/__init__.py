"""Core session, gating and introspection components."""

from .classifier import QueryIntent, check_forbidden, classify, statement_operation
from .connection import DatabaseConnection, FetchResult
from .dialect import probe, resolve_dialect
from .executor import QueryExecutor
from .inspector import MetadataInspector
from .registry import ConnectionRegistry, load_config
from .session import SessionStore

__all__ = [
    "ConnectionRegistry",
    "DatabaseConnection",
    "FetchResult",
    "MetadataInspector",
    "QueryExecutor",
    "QueryIntent",
    "SessionStore",
    "check_forbidden",
    "classify",
    "load_config",
    "probe",
    "resolve_dialect",
    "statement_operation",
]
