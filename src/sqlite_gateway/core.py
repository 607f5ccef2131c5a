"""Process wiring: one database, one gateway, two front ends."""

import asyncio
import logging
import os
from typing import Optional

import uvicorn

from .database import DatabaseConnectionConfig, DatabaseHandler
from .gateway import QueryGateway
from .http_server import create_http_app
from .mcp.server import MCPServer
from .mcp.stdio import run_stdio
from .utils.config import ConfigManager


logger = logging.getLogger(__name__)


class GatewayServer(uvicorn.Server):
    """uvicorn server that exits immediately on SIGINT/SIGTERM.

    In-flight requests are not drained.
    """

    def handle_exit(self, sig, frame) -> None:
        logger.info(f"Received signal {sig}, exiting")
        logging.shutdown()
        os._exit(0)


class GatewaySystem:
    """Owns the database handle and the front ends built around it."""

    def __init__(self, config_path: Optional[str] = None, config: Optional[ConfigManager] = None):
        """Initialize the system.

        Args:
            config_path: Path to configuration file
            config: Preloaded configuration, takes precedence over config_path
        """
        self.config = config or ConfigManager(config_path)

        self.database: Optional[DatabaseHandler] = None
        self.gateway: Optional[QueryGateway] = None
        self.mcp_server: Optional[MCPServer] = None
        self.http_app = None

        self.is_initialized = False

    def initialize(self) -> None:
        """Open the database and build the gateway and both front ends."""
        if self.is_initialized:
            return

        url = self.config.get("database.url")
        if not url:
            raise ValueError("Database path not found in configuration")

        self.database = DatabaseHandler(DatabaseConnectionConfig(
            name=os.path.basename(url) or "main",
            url=url,
            timeout=self.config.get("database.timeout", 5.0)
        ))

        self.gateway = QueryGateway(
            self.database,
            row_limit=self.config.get("query.default_limit", 1000),
            preview_rows=self.config.get("query.preview_rows", 5)
        )

        allowed_origins = self.config.get("http.allowed_origins")
        self.mcp_server = MCPServer(
            self.gateway,
            public_url=self.config.get_public_url(),
            allowed_origins=allowed_origins
        )
        self.http_app = create_http_app(
            self.gateway,
            allowed_origins=allowed_origins,
            database_name=self.database.config.name
        )

        self.is_initialized = True
        logger.info(f"Gateway initialized for database {url}")

    def _uvicorn_server(self, app, host: str, port: int) -> GatewayServer:
        config = uvicorn.Config(
            app,
            host=host,
            port=port,
            log_level=str(self.config.get("logging.level", "INFO")).lower(),
            # uvicorn's own config sends access logs to stdout
            log_config=None
        )
        return GatewayServer(config)

    async def start_server(self) -> None:
        """Run the HTTP data server and the MCP transport in one event loop."""
        self.initialize()

        http_host = self.config.get("http.host", "localhost")
        http_port = self.config.get("http.port", 31111)
        logger.info(f"Starting HTTP data server on {http_host}:{http_port}")
        services = [self._uvicorn_server(self.http_app, http_host, http_port).serve()]

        transport = self.config.get("mcp.transport", "stdio")
        if transport == "http":
            mcp_host = self.config.get("mcp.host", "localhost")
            mcp_port = self.config.get("mcp.port", 8000)
            logger.info(f"Starting MCP server on {mcp_host}:{mcp_port}")
            services.append(self._uvicorn_server(self.mcp_server.app, mcp_host, mcp_port).serve())
        else:
            services.append(run_stdio(self.mcp_server))

        try:
            await asyncio.gather(*services)
        finally:
            await self.close()

    def run_server(self) -> None:
        """Run both servers (blocking)."""
        asyncio.run(self.start_server())

    async def close(self) -> None:
        """Close the database handle."""
        if self.gateway:
            await self.gateway.close()
        logger.info("Gateway system closed")
