"""Plain HTTP endpoints serving table, view and query data."""

import logging
import re
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.status import (
    HTTP_400_BAD_REQUEST,
    HTTP_403_FORBIDDEN,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from .exceptions import GatewayError
from .gateway import QueryGateway
from .models import HealthCheckResponse, ResultSet
from .validators import is_select_query
from .version import __version__


logger = logging.getLogger(__name__)

LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


def parse_limit(value: Optional[str], default: int) -> int:
    """Parse the ``limit`` query parameter from its leading digits.

    ``"2.5"`` reads as 2 and ``"10abc"`` as 10. Values with no leading
    integer, or below 1, mean the default.
    """
    if value is None:
        return default
    match = LEADING_INT_PATTERN.match(value)
    if not match:
        return default
    limit = int(match.group(1))
    return limit if limit > 0 else default


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_http_app(
    gateway: QueryGateway,
    allowed_origins: Optional[List[str]] = None,
    database_name: str = "main"
) -> FastAPI:
    """Build the HTTP data app around an existing gateway.

    Args:
        gateway: Query gateway shared with the MCP front end
        allowed_origins: CORS origins, all origins when omitted
        database_name: Name reported by the health check

    Returns:
        FastAPI application
    """
    app = FastAPI(title="SQLite Query Gateway", version=__version__)
    app.state.gateway = gateway

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins or ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _render(rows: ResultSet, fmt: Optional[str]) -> Response:
        body, media_type = gateway.render(rows, fmt)
        logger.debug(f"[HTTP] Sending {media_type} response ({len(body)} bytes)")
        return Response(content=body, media_type=media_type)

    @app.get("/data/{name}")
    async def get_data(name: str, format: Optional[str] = None, limit: Optional[str] = None):
        """Get table or view data in CSV or JSON format."""
        row_limit = parse_limit(limit, gateway.row_limit)
        logger.info(f"[HTTP] GET /data/{name} - format: {format or 'csv'}, limit: {row_limit}")

        try:
            rows = await gateway.read_table(name, row_limit)
        except GatewayError as e:
            logger.error(f"[HTTP] Error getting data for {name}: {e}")
            return _error(HTTP_500_INTERNAL_SERVER_ERROR, f"Error getting data: {e}")

        logger.info(f"[HTTP] Query returned {len(rows)} rows")
        return _render(rows, format)

    @app.get("/query")
    async def run_query(sql: Optional[str] = None, format: Optional[str] = None):
        """Execute a SELECT query and return the results."""
        if not sql or not sql.strip():
            logger.warning("[HTTP] Missing SQL query parameter")
            return _error(HTTP_400_BAD_REQUEST, "Missing SQL query")

        logger.info(f"[HTTP] GET /query - sql: {sql[:50]}, format: {format or 'csv'}")

        if not is_select_query(sql):
            logger.warning(f"[HTTP] Non-SELECT query rejected: {sql[:50]}")
            return _error(HTTP_403_FORBIDDEN, "Only SELECT queries are allowed")

        try:
            rows = await gateway.execute_query(sql, read_only=True)
        except GatewayError as e:
            logger.error(f"[HTTP] Error executing query: {e}")
            return _error(HTTP_500_INTERNAL_SERVER_ERROR, f"Error executing query: {e}")

        logger.info(f"[HTTP] Query returned {len(rows)} rows")
        return _render(rows, format)

    @app.get("/health", response_model=HealthCheckResponse)
    async def health_check():
        """Health check endpoint."""
        return HealthCheckResponse(status="healthy", version=__version__, database=database_name)

    return app
