#!/usr/bin/env python3
"""
Simple example of using the SQLite query gateway.

This script runs a few statements through the gateway the same way the MCP
tools do, and prints the links the HTTP data server would hand out.
"""

import asyncio
import os
import sys

from dotenv import load_dotenv

from sqlite_gateway import DatabaseHandler, GatewayError, QueryGateway
from sqlite_gateway.database import DatabaseConnectionConfig
from sqlite_gateway.mcp.tools import ToolHandler


async def main():
    """Main example function."""
    load_dotenv()

    db_path = sys.argv[1] if len(sys.argv) > 1 else os.getenv("SQLITE_DB_PATH")
    if not db_path:
        print("Usage: simple_query.py DATABASE (or set SQLITE_DB_PATH)")
        return

    gateway = QueryGateway(DatabaseHandler(DatabaseConnectionConfig(url=db_path)))
    tools = ToolHandler(gateway, os.getenv("PUBLIC_BASE_URL", "http://localhost:31111"))

    try:
        print("Tables and views:")
        tables = await gateway.list_tables()
        for row in tables:
            print(f"  - {row['name']}")

        for row in tables[:3]:
            name = row["name"]
            rows = await gateway.read_table(name, limit=5)
            print(f"\nFirst rows of {name}:")
            print(gateway.formatter.format_table(rows))
            print(f"Full data: {tools.data_url(name)}")

        # Rejected before it reaches the database
        try:
            await gateway.execute_query("DELETE FROM sqlite_master", read_only=True)
        except GatewayError as e:
            print(f"\nRejected: {e.message}")

    finally:
        await gateway.close()


if __name__ == "__main__":
    asyncio.run(main())
