"""Tool handlers exposing the query gateway over MCP."""

import json
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple, Type
from urllib.parse import quote

from pydantic import BaseModel, ValidationError

from ..exceptions import GatewayError
from ..gateway import QueryGateway
from ..validators import require_select_prefix
from .protocol import (
    CreateViewArgs,
    ExecuteQueryArgs,
    ExecuteQueryWithUrlArgs,
    ListTablesArgs,
    ToolDefinition,
    ToolResult,
)


logger = logging.getLogger(__name__)


class UnknownToolError(LookupError):
    """Raised when a tools/call names a tool that does not exist."""


class ToolHandler:
    """Translate tool calls into gateway calls.

    Gateway rejections and engine failures come back as error-flagged tool
    results; they are never raised through the transport.
    """

    def __init__(self, gateway: QueryGateway, public_url: str = "http://localhost:31111"):
        """Initialize tool handler.

        Args:
            gateway: Query gateway shared with the HTTP front end
            public_url: Base URL of the HTTP data server, used in returned links
        """
        self.gateway = gateway
        self.public_url = public_url.rstrip("/")
        self._tools: Dict[str, Tuple[Type[BaseModel], Callable[..., Awaitable[ToolResult]], str]] = {
            "execute_query": (
                ExecuteQueryArgs,
                self._execute_query,
                "Execute a SQL query against the database and return the rows as CSV. "
                "Set read_only to restrict execution to SELECT statements.",
            ),
            "list_tables": (
                ListTablesArgs,
                self._list_tables,
                "List the tables and views in the database.",
            ),
            "execute_query_with_url": (
                ExecuteQueryWithUrlArgs,
                self._execute_query_with_url,
                "Run a SELECT query, show a short preview and return an HTTP URL "
                "serving the full results.",
            ),
            "create_view": (
                CreateViewArgs,
                self._create_view,
                "Create a view from a SELECT query and return an HTTP URL serving its data.",
            ),
        }

    def list_tools(self) -> List[ToolDefinition]:
        """Definitions advertised through tools/list."""
        return [
            ToolDefinition(name=name, description=description, inputSchema=model.model_json_schema())
            for name, (model, _, description) in self._tools.items()
        ]

    async def call(self, name: str, arguments: Optional[Dict[str, Any]] = None) -> ToolResult:
        """Invoke a tool by name.

        Raises:
            UnknownToolError: no tool with that name exists
        """
        if name not in self._tools:
            raise UnknownToolError(f"Unknown tool: {name}")

        model, handler, _ = self._tools[name]

        try:
            args = model(**(arguments or {}))
        except ValidationError as e:
            logger.warning(f"Invalid arguments for {name}: {e}")
            return ToolResult.error(f"Error: Invalid arguments for {name}: {e}")

        try:
            return await handler(args)
        except GatewayError as e:
            logger.warning(f"Tool {name} rejected ({e.error_type}): {e}")
            return ToolResult.error(self.gateway.formatter.format_error(e.message))
        except Exception as e:
            logger.error(f"Error running tool {name}: {e}", exc_info=True)
            return ToolResult.error(self.gateway.formatter.format_error(str(e)))

    async def _execute_query(self, args: ExecuteQueryArgs) -> ToolResult:
        rows = await self.gateway.execute_query(args.query, read_only=bool(args.read_only))
        return ToolResult.text(self.gateway.formatter.to_csv(rows))

    async def _list_tables(self, args: ListTablesArgs) -> ToolResult:
        tables = await self.gateway.list_tables()
        names = [row["name"] for row in tables]
        return ToolResult.text(json.dumps(names, indent=2))

    async def _execute_query_with_url(self, args: ExecuteQueryWithUrlArgs) -> ToolResult:
        require_select_prefix(args.query)
        rows = await self.gateway.execute_query(args.query, read_only=True)

        url = self.query_url(args.query)
        shown = min(len(rows), self.gateway.preview_rows)

        parts = []
        if args.description:
            parts.append(args.description)
            parts.append("")
        parts.append(f"Preview ({shown} of {len(rows)} rows):")
        parts.append(self.gateway.preview(rows).rstrip("\n") or "(no rows)")
        parts.append("")
        parts.append(f"Full results (CSV): {url}")
        parts.append(f"Full results (JSON): {self.query_url(args.query, 'json')}")

        return ToolResult.text("\n".join(parts))

    async def _create_view(self, args: CreateViewArgs) -> ToolResult:
        name = await self.gateway.create_view(args.name, args.query)

        parts = [f"View '{name}' created."]
        if args.description:
            parts.append(args.description)
        parts.append("")
        parts.append(f"Data (CSV): {self.data_url(name)}")
        parts.append(f"Data (JSON): {self.data_url(name, 'json')}")

        return ToolResult.text("\n".join(parts))

    def query_url(self, query: str, fmt: str = "csv") -> str:
        """HTTP URL running ``query`` through the /query endpoint."""
        return f"{self.public_url}/query?sql={quote(query, safe='')}&format={fmt}"

    def data_url(self, name: str, fmt: str = "csv") -> str:
        """HTTP URL serving a table or view through the /data endpoint."""
        return f"{self.public_url}/data/{quote(name, safe='')}?format={fmt}"
