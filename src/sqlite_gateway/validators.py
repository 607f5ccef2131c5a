"""Statement classification and the query safety policy."""

import logging
import re

from .exceptions import (
    DestructiveStatementBlocked,
    ReadOnlyViolation,
    TransportRejection,
)
from .models import StatementKind


logger = logging.getLogger(__name__)

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


class QueryValidator:
    """Textual classifier deciding whether a query may run.

    This is a keyword heuristic, not a SQL parser. Comments, multiple
    statements in one string and procedure calls are not inspected.
    """

    def classify(self, query: str) -> StatementKind:
        """Classify a statement by its trimmed, upper-cased text.

        Args:
            query: Raw query text

        Returns:
            The statement kind; the first matching rule wins
        """
        normalized = query.strip().upper()

        if normalized.startswith("SELECT"):
            return StatementKind.SELECT
        if normalized.startswith("DROP "):
            return StatementKind.DESTRUCTIVE
        if "DELETE FROM" in normalized and "WHERE" not in normalized:
            return StatementKind.DESTRUCTIVE
        return StatementKind.MUTATING

    def enforce(self, query: str, read_only: bool = False) -> StatementKind:
        """Apply the safety policy to a query.

        Args:
            query: Raw query text
            read_only: Reject anything that is not a SELECT

        Returns:
            The statement kind when the query may run

        Raises:
            ReadOnlyViolation: read-only mode and the query is not a SELECT
            DestructiveStatementBlocked: bare DROP or unconditioned DELETE
        """
        kind = self.classify(query)

        if read_only and kind != StatementKind.SELECT:
            logger.warning(f"Rejected {kind.value} statement in read-only mode")
            raise ReadOnlyViolation(query=query)

        if kind == StatementKind.DESTRUCTIVE:
            logger.warning("Rejected potentially destructive statement")
            raise DestructiveStatementBlocked(query=query)

        return kind


def is_select_query(query: str) -> bool:
    """Lexical check used by the front ends before calling the gateway."""
    return bool(query) and query.strip().lower().startswith("select")


def require_select_prefix(query: str) -> None:
    """Reject anything that does not lexically start with ``select``."""
    if not is_select_query(query):
        raise TransportRejection("Only SELECT queries are allowed", query=query)


def validate_identifier(name: str) -> str:
    """Validate a table or view name supplied by a caller."""
    if not isinstance(name, str) or not name.strip():
        raise TransportRejection("View name cannot be empty")

    name = name.strip()
    if not IDENTIFIER_PATTERN.match(name):
        raise TransportRejection(
            f"Invalid view name: {name!r}. Use letters, numbers and underscores, "
            "starting with a letter or underscore"
        )
    return name


def quote_identifier(name: str) -> str:
    """Quote an identifier for interpolation into synthesized SQL."""
    return '"' + name.replace('"', '""') + '"'


_default_validator = QueryValidator()


def classify_statement(query: str) -> StatementKind:
    return _default_validator.classify(query)


def enforce_policy(query: str, read_only: bool = False) -> StatementKind:
    return _default_validator.enforce(query, read_only)
