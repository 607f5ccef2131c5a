"""Statement classification and safety policy."""

import pytest

from sqlite_gateway.exceptions import (
    DestructiveStatementBlocked,
    ReadOnlyViolation,
    TransportRejection,
)
from sqlite_gateway.models import StatementKind
from sqlite_gateway.validators import (
    QueryValidator,
    classify_statement,
    enforce_policy,
    is_select_query,
    quote_identifier,
    require_select_prefix,
    validate_identifier,
)


@pytest.mark.parametrize("query, expected", [
    ("SELECT 1", StatementKind.SELECT),
    ("   select * from users  ", StatementKind.SELECT),
    ("SeLeCt name FROM users", StatementKind.SELECT),
    ("DROP TABLE users", StatementKind.DESTRUCTIVE),
    ("  drop view v", StatementKind.DESTRUCTIVE),
    ("DELETE FROM users", StatementKind.DESTRUCTIVE),
    ("delete from users", StatementKind.DESTRUCTIVE),
    ("DELETE FROM users WHERE id = 1", StatementKind.MUTATING),
    ("UPDATE users SET name = 'x'", StatementKind.MUTATING),
    ("INSERT INTO users (name) VALUES ('x')", StatementKind.MUTATING),
    ("CREATE VIEW v AS SELECT 1", StatementKind.MUTATING),
    ("WITH x AS (SELECT 1) SELECT * FROM x", StatementKind.MUTATING),
])
def test_classification(query, expected):
    assert classify_statement(query) == expected


def test_classification_ignores_case_and_surrounding_whitespace():
    variants = ["drop table t", "DROP TABLE t", "\n\t Drop Table t  "]
    kinds = {classify_statement(text) for text in variants}
    assert kinds == {StatementKind.DESTRUCTIVE}


def test_classification_is_deterministic():
    validator = QueryValidator()
    query = "DELETE FROM users WHERE id = 3"
    assert validator.classify(query) == validator.classify(query) == StatementKind.MUTATING


def test_drop_needs_trailing_space():
    assert classify_statement("DROP") == StatementKind.MUTATING


def test_heuristic_only_looks_at_the_prefix():
    # Multi-statement payloads are not inspected past the first keyword
    assert classify_statement("SELECT 1; DROP TABLE users") == StatementKind.SELECT


def test_read_only_allows_select():
    assert enforce_policy("SELECT 1", read_only=True) == StatementKind.SELECT


def test_read_only_rejects_update():
    with pytest.raises(ReadOnlyViolation) as exc_info:
        enforce_policy("UPDATE t SET x=1", read_only=True)
    assert str(exc_info.value) == "Only SELECT queries are allowed in read-only mode"
    assert exc_info.value.query == "UPDATE t SET x=1"


def test_read_only_is_checked_before_destructive():
    with pytest.raises(ReadOnlyViolation):
        enforce_policy("DROP TABLE t", read_only=True)


@pytest.mark.parametrize("query", ["DROP TABLE t", "DELETE FROM t"])
def test_destructive_blocked_without_read_only(query):
    with pytest.raises(DestructiveStatementBlocked) as exc_info:
        enforce_policy(query, read_only=False)
    assert str(exc_info.value).startswith("Potentially destructive query detected")


def test_scoped_delete_allowed():
    assert enforce_policy("DELETE FROM t WHERE id=1") == StatementKind.MUTATING


def test_select_prefix_filter():
    assert is_select_query("  Select * FROM users")
    assert not is_select_query("update t set x=1")
    assert not is_select_query("")

    require_select_prefix("select 1")
    with pytest.raises(TransportRejection) as exc_info:
        require_select_prefix("update t set x=1")
    assert str(exc_info.value) == "Only SELECT queries are allowed"


@pytest.mark.parametrize("name", ["users", "_private", "Active_Users_2024"])
def test_valid_identifiers(name):
    assert validate_identifier(name) == name


@pytest.mark.parametrize("name", ["", "   ", "1users", "bad name", "v; DROP TABLE users", "a-b"])
def test_invalid_identifiers(name):
    with pytest.raises(TransportRejection):
        validate_identifier(name)


def test_quote_identifier_doubles_quotes():
    assert quote_identifier("users") == '"users"'
    assert quote_identifier('we"ird') == '"we""ird"'
