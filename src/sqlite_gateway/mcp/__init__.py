"""Model Context Protocol (MCP) front end for the query gateway."""

from .server import MCPServer
from .tools import ToolHandler
from .protocol import MCPMessage, MCPRequest, MCPResponse

__all__ = ["MCPServer", "ToolHandler", "MCPMessage", "MCPRequest", "MCPResponse"]
