"""MCP protocol message definitions and types."""

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


PROTOCOL_VERSION = "2024-11-05"


class MCPMethod(str, Enum):
    """MCP method names."""
    INITIALIZE = "initialize"
    PING = "ping"
    LIST_TOOLS = "tools/list"
    CALL_TOOL = "tools/call"
    LIST_RESOURCES = "resources/list"
    LIST_RESOURCE_TEMPLATES = "resources/templates/list"
    READ_RESOURCE = "resources/read"
    LIST_PROMPTS = "prompts/list"
    GET_PROMPT = "prompts/get"


class MCPErrorCode:
    """JSON-RPC 2.0 error codes, plus the MCP resource-not-found code."""
    PARSE_ERROR = -32700
    INVALID_REQUEST = -32600
    METHOD_NOT_FOUND = -32601
    INVALID_PARAMS = -32602
    INTERNAL_ERROR = -32603
    RESOURCE_NOT_FOUND = -32002


class MCPMessage(BaseModel):
    """Base MCP message."""
    jsonrpc: str = Field(default="2.0", description="JSON-RPC version")
    id: Optional[Union[str, int]] = Field(default=None, description="Message ID")


class MCPRequest(MCPMessage):
    """MCP request or notification message."""
    method: str = Field(description="Method name")
    params: Optional[Dict[str, Any]] = Field(default=None, description="Request parameters")

    @property
    def is_notification(self) -> bool:
        return self.id is None


class MCPError(BaseModel):
    """MCP error information."""
    code: int = Field(description="Error code")
    message: str = Field(description="Error message")
    data: Optional[Any] = Field(default=None, description="Additional error data")


class MCPResponse(MCPMessage):
    """MCP response message."""
    result: Optional[Any] = Field(default=None, description="Response result")
    error: Optional[MCPError] = Field(default=None, description="Error information")

    def to_wire(self) -> Dict[str, Any]:
        """JSON-RPC payload: exactly one of ``result`` or ``error``."""
        message: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.model_dump(exclude_none=True)
        else:
            message["result"] = self.result if self.result is not None else {}
        return message


class MCPProtocolError(Exception):
    """Raised by method handlers to produce a JSON-RPC error response."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


class TextContent(BaseModel):
    """A text content block."""
    type: str = Field(default="text")
    text: str = Field(description="Text payload")


class ToolResult(BaseModel):
    """Result of a tool call."""
    content: List[TextContent] = Field(default=[], description="Content blocks")
    isError: bool = Field(default=False, description="Whether the tool call failed")

    @classmethod
    def text(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def error(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)], isError=True)


class ToolDefinition(BaseModel):
    """Tool advertised through tools/list."""
    name: str = Field(description="Tool name")
    description: str = Field(description="What the tool does")
    inputSchema: Dict[str, Any] = Field(description="JSON schema of the arguments")


# Tool arguments

class ExecuteQueryArgs(BaseModel):
    """Arguments of the execute_query tool."""
    query: str = Field(description="SQL query to execute")
    read_only: Optional[bool] = Field(default=None, description="If true, only SELECT queries will be allowed")


class ListTablesArgs(BaseModel):
    """The list_tables tool takes no arguments."""


class ExecuteQueryWithUrlArgs(BaseModel):
    """Arguments of the execute_query_with_url tool."""
    query: str = Field(description="SELECT query to execute")
    description: Optional[str] = Field(default=None, description="What the query returns")


class CreateViewArgs(BaseModel):
    """Arguments of the create_view tool."""
    name: str = Field(description="Name of the view to create")
    query: str = Field(description="SELECT query the view is defined by")
    description: Optional[str] = Field(default=None, description="What the view contains")


# Resources and prompts

class ResourceInfo(BaseModel):
    """Resource advertised through resources/list."""
    uri: str = Field(description="Resource URI")
    name: str = Field(description="Resource name")
    description: Optional[str] = Field(default=None, description="Resource description")
    mimeType: str = Field(default="text/csv", description="Content type of the resource")


class ResourceTemplate(BaseModel):
    """Parameterised resource advertised through resources/templates/list."""
    uriTemplate: str = Field(description="RFC 6570 URI template")
    name: str = Field(description="Template name")
    description: Optional[str] = Field(default=None, description="Template description")
    mimeType: str = Field(default="text/csv", description="Content type of the resource")


class ResourceContents(BaseModel):
    """Contents returned by resources/read."""
    uri: str = Field(description="Resource URI")
    mimeType: str = Field(default="text/csv", description="Content type")
    text: str = Field(description="Resource body")


class PromptArgument(BaseModel):
    """Argument accepted by a prompt template."""
    name: str = Field(description="Argument name")
    description: Optional[str] = Field(default=None, description="Argument description")
    required: bool = Field(default=False, description="Whether the argument is required")


class PromptDefinition(BaseModel):
    """Prompt advertised through prompts/list."""
    name: str = Field(description="Prompt name")
    description: Optional[str] = Field(default=None, description="Prompt description")
    arguments: List[PromptArgument] = Field(default=[], description="Prompt arguments")
