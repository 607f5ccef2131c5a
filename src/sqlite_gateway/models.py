"""Data models for the SQLite query gateway."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Union

from pydantic import BaseModel, Field


# A single cell value. bool is listed before the numeric types because it is
# a subclass of int and must keep its own kind.
Scalar = Union[None, bool, int, float, str]
Row = Dict[str, Scalar]
ResultSet = List[Row]


class ScalarKind(str, Enum):
    """Tagged variant of the values a row may carry."""
    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    TEXT = "text"


def scalar_kind(value: Scalar) -> ScalarKind:
    """Return the variant tag of a cell value."""
    if value is None:
        return ScalarKind.NULL
    if isinstance(value, bool):
        return ScalarKind.BOOL
    if isinstance(value, (int, float)):
        return ScalarKind.NUMBER
    if isinstance(value, str):
        return ScalarKind.TEXT
    raise TypeError(f"Unsupported cell value of type {type(value).__name__}")


class StatementKind(str, Enum):
    """Classification of a statement for the safety policy."""
    SELECT = "SELECT"
    MUTATING = "MUTATING"
    DESTRUCTIVE = "DESTRUCTIVE"


class OutputFormat(str, Enum):
    """Wire formats a result set can be rendered to."""
    CSV = "csv"
    JSON = "json"

    @classmethod
    def parse(cls, value: Optional[str]) -> "OutputFormat":
        """Map a caller-supplied format name to a format, defaulting to CSV."""
        if isinstance(value, cls):
            return value
        if value and value.strip().lower() == cls.JSON.value:
            return cls.JSON
        return cls.CSV


class QueryRequest(BaseModel):
    """A raw query submitted to the gateway."""

    text: str = Field(description="SQL text, executed verbatim")
    read_only: bool = Field(default=False, description="Reject anything but SELECT")
    params: List[Scalar] = Field(default=[], description="Positional bind values")


class QueryResult(BaseModel):
    """Outcome of a successful gateway call."""

    query: str = Field(description="SQL text that was executed")
    kind: StatementKind = Field(description="Statement classification")
    rows: List[Dict[str, Scalar]] = Field(default=[], description="Result rows")
    execution_time: Optional[float] = Field(default=None, description="Seconds spent in the engine")
    timestamp: datetime = Field(default_factory=datetime.now)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def columns(self) -> List[str]:
        return list(self.rows[0].keys()) if self.rows else []


class HealthCheckResponse(BaseModel):
    """Response model for health checks."""

    status: str = Field(description="Health status")
    version: str = Field(description="System version")
    database: str = Field(description="Database the gateway is bound to")
