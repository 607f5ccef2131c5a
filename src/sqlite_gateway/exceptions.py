"""Error taxonomy for the query gateway."""

from typing import Optional


class GatewayError(Exception):
    """Base class for failures reported back to gateway callers."""

    error_type = "gateway_error"

    def __init__(self, message: str, query: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.query = query

    def __str__(self) -> str:
        return self.message


class ReadOnlyViolation(GatewayError):
    """A non-SELECT statement was submitted in read-only mode."""

    error_type = "read_only_violation"

    def __init__(
        self,
        message: str = "Only SELECT queries are allowed in read-only mode",
        query: Optional[str] = None
    ):
        super().__init__(message, query)


class DestructiveStatementBlocked(GatewayError):
    """A bare DROP or unconditioned DELETE was rejected."""

    error_type = "destructive_statement"

    def __init__(
        self,
        message: str = (
            "Potentially destructive query detected. Please add constraints "
            "or remove this safety check if intended."
        ),
        query: Optional[str] = None
    ):
        super().__init__(message, query)


class ExecutionFailed(GatewayError):
    """The database engine refused or failed to run the statement."""

    error_type = "execution_error"


class NotFound(GatewayError):
    """The requested table or view does not exist."""

    error_type = "not_found"


class TransportRejection(GatewayError):
    """A front end rejected the request before it reached the gateway."""

    error_type = "transport_rejection"
