"""Database capability backing the query gateway."""

import base64
import logging
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Optional, Sequence

from pydantic import BaseModel, Field
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from .models import ResultSet, Row, Scalar


logger = logging.getLogger(__name__)


class DatabaseConnectionConfig(BaseModel):
    """Database connection configuration."""
    name: str = Field(default="main", description="Database connection name")
    url: str = Field(description="Database file path or SQLAlchemy URL")
    timeout: float = Field(default=5.0, description="Seconds to wait on a locked database")
    echo: bool = Field(default=False, description="Log every statement SQLAlchemy emits")


def to_async_url(url: str) -> str:
    """Turn a file path or sync SQLite URL into an aiosqlite URL."""
    if url.startswith("sqlite+aiosqlite://"):
        return url
    if url.startswith("sqlite://"):
        return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
    if "://" in url:
        return url
    return f"sqlite+aiosqlite:///{url}"


def _normalize_value(value: Any) -> Scalar:
    """Coerce an engine value into one of the supported scalar kinds."""
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        return base64.b64encode(bytes(value)).decode("ascii")
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


class DatabaseHandler:
    """Async SQLite access exposing ``query`` and ``execute``."""

    def __init__(self, config: DatabaseConnectionConfig):
        """Initialize database handler.

        Args:
            config: Database connection configuration
        """
        self.config = config
        self.engine: Optional[AsyncEngine] = None
        self._setup_engine()

    def _setup_engine(self):
        """Setup SQLAlchemy async engine."""
        url = to_async_url(self.config.url)
        self.engine = create_async_engine(
            url,
            connect_args={"timeout": self.config.timeout},
            echo=self.config.echo
        )
        logger.info(f"Database engine ready for {self.config.name}")

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None) -> ResultSet:
        """Run a statement and return its rows.

        The text is handed to the driver unchanged. Statements that return no
        rows (DDL, DML) produce an empty list. Each call is its own unit of
        work: committed on success, rolled back on failure.
        """
        try:
            async with self.engine.begin() as conn:
                result = await conn.exec_driver_sql(sql, tuple(params or ()))
                if not result.returns_rows:
                    return []

                columns = list(result.keys())
                rows = result.fetchall()
        except DBAPIError as e:
            raise e.orig from e

        data: ResultSet = []
        for row in rows:
            record: Row = {}
            for column, value in zip(columns, row):
                record[column] = _normalize_value(value)
            data.append(record)
        return data

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        """Run a statement and return the number of affected rows."""
        try:
            async with self.engine.begin() as conn:
                result = await conn.exec_driver_sql(sql, tuple(params or ()))
                return max(result.rowcount, 0)
        except DBAPIError as e:
            raise e.orig from e

    async def close(self):
        """Close database connections."""
        if self.engine:
            await self.engine.dispose()
            logger.info(f"Database engine for {self.config.name} disposed")
