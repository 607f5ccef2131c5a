"""Shared fixtures: a seeded SQLite file, the gateway and in-process clients."""

import sqlite3
from typing import Any, List, Optional, Sequence

import httpx
import pytest
import pytest_asyncio

from sqlite_gateway.database import DatabaseConnectionConfig, DatabaseHandler
from sqlite_gateway.gateway import QueryGateway
from sqlite_gateway.http_server import create_http_app
from sqlite_gateway.mcp.server import MCPServer


PUBLIC_URL = "http://localhost:31111"

USERS = [
    (1, "Alice", "alice@example.com", 9.5),
    (2, "Bob", "bob@example.com", None),
    (3, "Carol, PhD", "carol@example.com", 7.25),
]

NOTES = [
    (1, 1, 'says "hi"'),
    (2, 1, "line one\nline two"),
    (3, 2, None),
]


@pytest.fixture
def db_path(tmp_path) -> str:
    """A fresh database file with two populated tables and an empty one."""
    path = tmp_path / "test.db"
    conn = sqlite3.connect(str(path))
    try:
        conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, email TEXT, score REAL)")
        conn.execute("CREATE TABLE notes (id INTEGER PRIMARY KEY, user_id INTEGER, body TEXT)")
        conn.execute("CREATE TABLE empty_table (id INTEGER PRIMARY KEY, label TEXT)")
        conn.executemany("INSERT INTO users VALUES (?, ?, ?, ?)", USERS)
        conn.executemany("INSERT INTO notes VALUES (?, ?, ?)", NOTES)
        conn.commit()
    finally:
        conn.close()
    return str(path)


def count_rows(db_path: str, table: str) -> int:
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        conn.close()


class RecordingDatabase:
    """Database capability that records statements instead of running them."""

    def __init__(self, rows: Optional[List[dict]] = None, error: Optional[Exception] = None):
        self.rows = rows or []
        self.error = error
        self.statements: List[str] = []
        self.closed = False

    async def query(self, sql: str, params: Optional[Sequence[Any]] = None):
        self.statements.append(sql)
        if self.error:
            raise self.error
        return list(self.rows)

    async def execute(self, sql: str, params: Optional[Sequence[Any]] = None) -> int:
        self.statements.append(sql)
        if self.error:
            raise self.error
        return 0

    async def close(self):
        self.closed = True


@pytest_asyncio.fixture
async def database(db_path):
    handler = DatabaseHandler(DatabaseConnectionConfig(url=db_path))
    yield handler
    await handler.close()


@pytest_asyncio.fixture
async def gateway(database):
    return QueryGateway(database)


@pytest_asyncio.fixture
async def http_client(gateway):
    app = create_http_app(gateway)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def mcp_server(gateway):
    return MCPServer(gateway, public_url=PUBLIC_URL)


@pytest_asyncio.fixture
async def mcp_client(mcp_server):
    transport = httpx.ASGITransport(app=mcp_server.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
