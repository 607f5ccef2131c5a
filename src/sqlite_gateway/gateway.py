"""Query gateway: validate, execute and serialize."""

import logging
import time
from typing import Any, Optional, Protocol, Sequence, Tuple

from .exceptions import ExecutionFailed, GatewayError
from .formatters import ResultFormatter
from .models import QueryRequest, QueryResult, ResultSet
from .validators import (
    QueryValidator,
    quote_identifier,
    require_select_prefix,
    validate_identifier,
)


logger = logging.getLogger(__name__)

LIST_TABLES_QUERY = (
    "SELECT name FROM sqlite_master "
    "WHERE type IN ('table', 'view') AND name NOT LIKE 'sqlite_%' "
    "ORDER BY name"
)


class DatabaseCapability(Protocol):
    """What the gateway needs from the underlying engine."""

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> ResultSet:
        ...

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        ...

    async def close(self) -> None:
        ...


class QueryGateway:
    """The only path from the front ends to the database."""

    def __init__(
        self,
        db: DatabaseCapability,
        row_limit: int = 1000,
        preview_rows: int = 5,
        formatter: Optional[ResultFormatter] = None,
        validator: Optional[QueryValidator] = None
    ):
        """Initialize the gateway.

        Args:
            db: Database capability; the gateway never opens its own
            row_limit: Default LIMIT when reading a whole table or view
            preview_rows: Rows shown in query previews
            formatter: Serializer shared by every front end
            validator: Statement classifier and safety policy
        """
        self.db = db
        self.row_limit = row_limit
        self.preview_rows = preview_rows
        self.formatter = formatter or ResultFormatter()
        self.validator = validator or QueryValidator()

    async def execute_query(
        self,
        query: str,
        read_only: bool = False,
        params: Optional[Sequence[Any]] = None
    ) -> ResultSet:
        """Validate a query against the safety policy and run it.

        Args:
            query: SQL text, executed unmodified
            read_only: Reject anything that is not a SELECT
            params: Positional bind values

        Returns:
            Rows in the order the engine produced them

        Raises:
            ReadOnlyViolation: read-only mode and the query is not a SELECT
            DestructiveStatementBlocked: bare DROP or unconditioned DELETE
            ExecutionFailed: the engine rejected or failed the statement
        """
        result = await self.run(QueryRequest(text=query, read_only=read_only, params=list(params or [])))
        return result.rows

    async def run(self, request: QueryRequest) -> QueryResult:
        """Execute a query request and report timing alongside the rows."""
        if not request.text or not request.text.strip():
            raise ExecutionFailed("Query text cannot be empty")

        kind = self.validator.enforce(request.text, request.read_only)
        logger.debug(f"Executing {kind.value} statement (read_only={request.read_only})")

        start_time = time.time()
        try:
            rows = await self.db.query(request.text, request.params)
        except GatewayError:
            raise
        except Exception as e:
            logger.error(f"Error executing query: {e}")
            raise ExecutionFailed(str(e), query=request.text) from e

        execution_time = time.time() - start_time
        logger.info(f"{kind.value} statement returned {len(rows)} rows in {execution_time * 1000:.0f}ms")

        return QueryResult(
            query=request.text,
            kind=kind,
            rows=rows,
            execution_time=execution_time
        )

    async def list_tables(self) -> ResultSet:
        """List tables and views as ``{name}`` rows."""
        return await self.execute_query(LIST_TABLES_QUERY, read_only=True)

    async def table_exists(self, name: str) -> bool:
        tables = await self.list_tables()
        return any(row["name"] == name for row in tables)

    async def read_table(self, name: str, limit: Optional[int] = None) -> ResultSet:
        """Read the leading rows of a table or view."""
        if limit is None or limit <= 0:
            limit = self.row_limit

        query = f"SELECT * FROM {quote_identifier(name)} LIMIT {int(limit)}"
        return await self.execute_query(query, read_only=True)

    async def create_view(self, name: str, query: str) -> str:
        """Create a view over a SELECT query.

        Nothing is sent to the database unless both the name and the query
        pass validation.

        Returns:
            The validated view name
        """
        name = validate_identifier(name)
        require_select_prefix(query)

        await self.execute_query(f"CREATE VIEW IF NOT EXISTS {name} AS {query}")
        logger.info(f"Created view {name}")
        return name

    def render(self, rows: ResultSet, fmt: Optional[str] = None) -> Tuple[str, str]:
        """Serialize rows; returns (body, media type)."""
        return self.formatter.render(rows, fmt)

    def preview(self, rows: ResultSet) -> str:
        """CSV of the first ``preview_rows`` rows."""
        return self.formatter.to_csv(rows[:self.preview_rows])

    async def close(self) -> None:
        """Release the database capability."""
        await self.db.close()
        logger.info("Query gateway closed")
