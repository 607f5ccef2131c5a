"""MCP over stdin/stdout, served by the mcp SDK.

The SDK owns framing, initialization and concurrency; every request is
delegated to the same tool, resource and prompt handlers the HTTP transport
uses.
"""

import io
import logging
import sys
from typing import Any, BinaryIO, Dict, List, Optional

import anyio
from mcp import types
from mcp.server import NotificationOptions, Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.models import InitializationOptions
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError

from ..exceptions import NotFound
from ..version import __version__
from .protocol import MCPErrorCode
from .server import SERVER_NAME, MCPServer


logger = logging.getLogger(__name__)


class ToolCallFailed(Exception):
    """Carries an error-flagged tool result through the SDK."""


def open_text_stream(buffer: BinaryIO) -> "anyio.AsyncFile[str]":
    """Wrap a byte stream for line reading.

    Undecodable bytes are replaced so a bad line fails JSON parsing on its
    own instead of ending the reader.
    """
    return anyio.wrap_file(io.TextIOWrapper(buffer, encoding="utf-8", errors="replace"))


def create_sdk_server(server: MCPServer) -> Server:
    """Register the gateway handlers on an mcp SDK server."""
    app = Server(SERVER_NAME)

    @app.list_tools()
    async def handle_list_tools() -> List[types.Tool]:
        return [types.Tool.model_validate(tool.model_dump()) for tool in server.tools.list_tools()]

    @app.call_tool()
    async def handle_call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[types.TextContent]:
        result = await server.tools.call(name, arguments or {})
        text = "\n".join(block.text for block in result.content)
        if result.isError:
            raise ToolCallFailed(text)
        return [types.TextContent(type="text", text=text)]

    @app.list_resources()
    async def handle_list_resources() -> List[types.Resource]:
        resources = await server.resources.list_resources()
        return [types.Resource.model_validate(resource.model_dump(exclude_none=True)) for resource in resources]

    @app.list_resource_templates()
    async def handle_list_resource_templates() -> List[types.ResourceTemplate]:
        return [
            types.ResourceTemplate.model_validate(template.model_dump(exclude_none=True))
            for template in server.resources.list_templates()
        ]

    @app.read_resource()
    async def handle_read_resource(uri: Any) -> List[ReadResourceContents]:
        uri = str(uri)
        try:
            contents = await server.resources.read_resource(uri)
        except NotFound as e:
            raise McpError(types.ErrorData(
                code=MCPErrorCode.RESOURCE_NOT_FOUND, message=e.message, data={"uri": uri}
            ))
        return [ReadResourceContents(content=contents.text, mime_type=contents.mimeType)]

    @app.list_prompts()
    async def handle_list_prompts() -> List[types.Prompt]:
        return [
            types.Prompt.model_validate(prompt.model_dump(exclude_none=True))
            for prompt in server.prompts.list_prompts()
        ]

    @app.get_prompt()
    async def handle_get_prompt(name: str, arguments: Optional[Dict[str, str]]) -> types.GetPromptResult:
        try:
            prompt = server.prompts.get_prompt(name, arguments)
        except (NotFound, ValueError) as e:
            raise McpError(types.ErrorData(code=MCPErrorCode.INVALID_PARAMS, message=str(e)))
        return types.GetPromptResult.model_validate(prompt)

    return app


def initialization_options(app: Server) -> InitializationOptions:
    return InitializationOptions(
        server_name=SERVER_NAME,
        server_version=__version__,
        capabilities=app.get_capabilities(
            notification_options=NotificationOptions(),
            experimental_capabilities={}
        )
    )


async def run_stdio(server: MCPServer) -> None:
    """Serve MCP over the process's stdin and stdout until stdin closes."""
    app = create_sdk_server(server)
    logger.info("SQLite MCP Server running on stdio")

    async with stdio_server(stdin=open_text_stream(sys.stdin.buffer)) as (read_stream, write_stream):
        await app.run(read_stream, write_stream, initialization_options(app))

    logger.info("stdin closed, stdio transport stopped")
