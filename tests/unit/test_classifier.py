"""Unit tests for the lexical query classifier."""

import pytest

from db_session_mcp.core.classifier import (
    FORBIDDEN_PATTERNS,
    QueryIntent,
    check_forbidden,
    classify,
    require_prefix,
    statement_operation,
)
from db_session_mcp.errors import (
    ForbiddenOperation,
    ReadOnlyViolation,
    WrongQueryKindForTool,
)


class TestClassify:
    """Intent detection and policy gating."""

    @pytest.mark.parametrize(
        "sql",
        [
            "SELECT 1",
            "  select * from users",
            "\n\tShow tables",
            "SELECTED_FIELDS",  # prefix match only
        ],
    )
    def test_read_prefixes(self, sql):
        assert classify(sql, read_only=False) is QueryIntent.READ
        assert classify(sql, read_only=True) is QueryIntent.READ

    @pytest.mark.parametrize(
        "sql",
        [
            "INSERT INTO t VALUES (1)",
            "update t set a = 1",
            "WITH x AS (SELECT 1) SELECT * FROM x",
            "EXPLAIN SELECT 1",
            "",
        ],
    )
    def test_everything_else_is_write(self, sql):
        assert classify(sql, read_only=False) is QueryIntent.WRITE

    def test_read_only_rejects_writes(self):
        with pytest.raises(ReadOnlyViolation) as exc_info:
            classify("DELETE FROM users", read_only=True)
        assert str(exc_info.value) == "read-only mode: write operations are not allowed"

    def test_read_only_check_precedes_denylist(self):
        with pytest.raises(ReadOnlyViolation):
            classify("DROP DATABASE prod", read_only=True)

    @pytest.mark.parametrize("pattern", FORBIDDEN_PATTERNS)
    def test_denylist_applies_without_read_only(self, pattern):
        with pytest.raises(ForbiddenOperation) as exc_info:
            classify(f"{pattern.upper()} something", read_only=False)
        assert str(exc_info.value) == f"dangerous operation detected: {pattern}"

    def test_denylist_matches_anywhere_in_text(self):
        # Lexical matching: a denylisted substring inside a read still trips it
        with pytest.raises(ForbiddenOperation):
            classify("SELECT 'truncate' AS word", read_only=False)

    def test_drop_table_is_allowed(self):
        assert classify("DROP TABLE old_logs", read_only=False) is QueryIntent.WRITE


class TestCheckForbidden:
    def test_passes_clean_statements(self):
        check_forbidden("SELECT * FROM orders")

    def test_names_first_matching_pattern(self):
        with pytest.raises(ForbiddenOperation) as exc_info:
            check_forbidden("drop schema s; truncate t")
        assert exc_info.value.pattern == "drop schema"


class TestRequirePrefix:
    def test_accepts_matching_keyword(self):
        require_prefix("  SeLeCt 1", "select")

    def test_rejects_other_keyword(self):
        with pytest.raises(WrongQueryKindForTool) as exc_info:
            require_prefix("show tables", "select")
        assert str(exc_info.value) == "only SELECT queries are allowed"

    def test_show_message(self):
        with pytest.raises(WrongQueryKindForTool) as exc_info:
            require_prefix("select 1", "show")
        assert str(exc_info.value) == "only SHOW queries are allowed"


class TestStatementOperation:
    @pytest.mark.parametrize(
        "sql,expected",
        [
            ("INSERT INTO t VALUES (1)", "INSERT"),
            ("  update t set a = 1", "UPDATE"),
            ("delete from t", "DELETE"),
            ("CREATE TABLE t (id int)", "CREATE"),
            ("alter table t add column b int", "ALTER"),
            ("DROP TABLE t", "DROP"),
            ("GRANT SELECT ON t TO bob", "QUERY"),
            ("SHOW TABLES", "QUERY"),
        ],
    )
    def test_operation_labels(self, sql, expected):
        assert statement_operation(sql) == expected
