"""SQLite Query Gateway.

Exposes a SQLite database to remote callers through MCP tools and a plain
HTTP query endpoint, both routed through one validating query gateway.
"""

from .gateway import QueryGateway
from .database import DatabaseHandler
from .exceptions import (
    DestructiveStatementBlocked,
    ExecutionFailed,
    GatewayError,
    NotFound,
    ReadOnlyViolation,
    TransportRejection,
)
from .version import __version__

__all__ = [
    "QueryGateway",
    "DatabaseHandler",
    "GatewayError",
    "ReadOnlyViolation",
    "DestructiveStatementBlocked",
    "ExecutionFailed",
    "NotFound",
    "TransportRejection",
    "__version__",
]
