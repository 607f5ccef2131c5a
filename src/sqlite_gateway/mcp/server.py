"""MCP server exposing the query gateway as tools, resources and prompts."""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.status import HTTP_202_ACCEPTED, HTTP_400_BAD_REQUEST

from ..exceptions import NotFound
from ..gateway import QueryGateway
from ..version import __version__
from .protocol import (
    PROTOCOL_VERSION,
    MCPError,
    MCPErrorCode,
    MCPMethod,
    MCPProtocolError,
    MCPRequest,
    MCPResponse,
)
from .resources import PromptHandler, ResourceHandler
from .tools import ToolHandler, UnknownToolError


logger = logging.getLogger(__name__)

SERVER_NAME = "sqlite-manager"


class MCPServer:
    """Model Context Protocol server for the query gateway."""

    def __init__(
        self,
        gateway: QueryGateway,
        public_url: str = "http://localhost:31111",
        allowed_origins: Optional[List[str]] = None
    ):
        """Initialize MCP server.

        Args:
            gateway: Query gateway shared with the HTTP front end
            public_url: Base URL of the HTTP data server
            allowed_origins: CORS origins for the HTTP transport
        """
        self.gateway = gateway
        self.tools = ToolHandler(gateway, public_url)
        self.resources = ResourceHandler(gateway)
        self.prompts = PromptHandler()
        self.method_handlers: Dict[str, Callable[[Dict[str, Any]], Awaitable[Any]]] = {}

        self.app = FastAPI(title="SQLite Query Gateway MCP Server", version=__version__)
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins or ["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        self._setup_routes()
        self._setup_method_handlers()

    def _setup_routes(self):
        """Setup FastAPI routes for the HTTP transport."""

        @self.app.post("/mcp")
        async def handle_mcp_request(request: MCPRequest):
            """Handle MCP requests."""
            response = await self.process_request(request)
            if response is None:
                return Response(status_code=HTTP_202_ACCEPTED)
            return JSONResponse(response.to_wire())

        @self.app.exception_handler(RequestValidationError)
        async def handle_invalid_message(request: Request, exc: RequestValidationError):
            """Answer malformed bodies with a JSON-RPC error instead of a 422."""
            if any(error.get("type") == "json_invalid" for error in exc.errors()):
                code, message = MCPErrorCode.PARSE_ERROR, "Parse error"
            else:
                code, message = MCPErrorCode.INVALID_REQUEST, "Invalid request"
            logger.warning(f"Rejected MCP message: {message}")
            response = self._error_response(None, code, message)
            return JSONResponse(response.to_wire(), status_code=HTTP_400_BAD_REQUEST)

        @self.app.get("/health")
        async def health_check():
            """Health check endpoint."""
            return {"status": "healthy", "server": SERVER_NAME, "version": __version__}

    def _setup_method_handlers(self):
        """Setup method handlers for the supported MCP methods."""
        self.method_handlers = {
            MCPMethod.INITIALIZE.value: self._handle_initialize,
            MCPMethod.PING.value: self._handle_ping,
            MCPMethod.LIST_TOOLS.value: self._handle_list_tools,
            MCPMethod.CALL_TOOL.value: self._handle_call_tool,
            MCPMethod.LIST_RESOURCES.value: self._handle_list_resources,
            MCPMethod.LIST_RESOURCE_TEMPLATES.value: self._handle_list_resource_templates,
            MCPMethod.READ_RESOURCE.value: self._handle_read_resource,
            MCPMethod.LIST_PROMPTS.value: self._handle_list_prompts,
            MCPMethod.GET_PROMPT.value: self._handle_get_prompt,
        }

    async def process_request(self, request: MCPRequest) -> Optional[MCPResponse]:
        """Process an MCP request.

        Returns:
            The response, or None for notifications
        """
        if request.is_notification:
            logger.debug(f"Received notification: {request.method}")
            return None

        if request.method not in self.method_handlers:
            return self._error_response(
                request.id, MCPErrorCode.METHOD_NOT_FOUND, f"Method not found: {request.method}"
            )

        handler = self.method_handlers[request.method]
        try:
            result = await handler(request.params or {})
            return MCPResponse(id=request.id, result=result)
        except MCPProtocolError as e:
            return self._error_response(request.id, e.code, e.message, e.data)
        except Exception as e:
            logger.error(f"Error handling method {request.method}: {e}", exc_info=True)
            return self._error_response(
                request.id, MCPErrorCode.INTERNAL_ERROR, "Internal error", str(e)
            )

    def _error_response(
        self,
        request_id: Any,
        code: int,
        message: str,
        data: Any = None
    ) -> MCPResponse:
        return MCPResponse(id=request_id, error=MCPError(code=code, message=message, data=data))

    async def _handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle initialization request."""
        return {
            "protocolVersion": params.get("protocolVersion") or PROTOCOL_VERSION,
            "serverInfo": {"name": SERVER_NAME, "version": __version__},
            "capabilities": {
                "tools": {"listChanged": False},
                "resources": {"subscribe": False, "listChanged": False},
                "prompts": {"listChanged": False},
            }
        }

    async def _handle_ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _handle_list_tools(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"tools": [tool.model_dump() for tool in self.tools.list_tools()]}

    async def _handle_call_tool(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Handle a tool call; tool failures stay inside the result."""
        name = params.get("name")
        if not name:
            raise MCPProtocolError(MCPErrorCode.INVALID_PARAMS, "name parameter is required")

        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise MCPProtocolError(MCPErrorCode.INVALID_PARAMS, "arguments must be an object")

        try:
            result = await self.tools.call(name, arguments)
        except UnknownToolError as e:
            raise MCPProtocolError(MCPErrorCode.INVALID_PARAMS, str(e))

        return result.model_dump()

    async def _handle_list_resources(self, params: Dict[str, Any]) -> Dict[str, Any]:
        resources = await self.resources.list_resources()
        return {"resources": [resource.model_dump(exclude_none=True) for resource in resources]}

    async def _handle_list_resource_templates(self, params: Dict[str, Any]) -> Dict[str, Any]:
        templates = self.resources.list_templates()
        return {"resourceTemplates": [template.model_dump(exclude_none=True) for template in templates]}

    async def _handle_read_resource(self, params: Dict[str, Any]) -> Dict[str, Any]:
        uri = params.get("uri")
        if not uri:
            raise MCPProtocolError(MCPErrorCode.INVALID_PARAMS, "uri parameter is required")

        try:
            contents = await self.resources.read_resource(uri)
        except NotFound as e:
            raise MCPProtocolError(MCPErrorCode.RESOURCE_NOT_FOUND, e.message, {"uri": uri})

        return {"contents": [contents.model_dump()]}

    async def _handle_list_prompts(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"prompts": [prompt.model_dump(exclude_none=True) for prompt in self.prompts.list_prompts()]}

    async def _handle_get_prompt(self, params: Dict[str, Any]) -> Dict[str, Any]:
        try:
            return self.prompts.get_prompt(params.get("name"), params.get("arguments"))
        except (NotFound, ValueError) as e:
            raise MCPProtocolError(MCPErrorCode.INVALID_PARAMS, str(e))
