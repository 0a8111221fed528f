"""Core data models for the Confluence MCP server.

Tool descriptors, calls, response envelopes and the remote error value
shared by the registry, the router and the domain adapters.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ExecutionType(str, Enum):
    """Type of tool execution - read operations vs write operations."""
    READ = "read"
    WRITE = "write"


class ToolDefinition(BaseModel):
    """
    Complete definition of an MCP tool.

    Tool names are globally unique; the domain only selects the adapter
    that serves the tool.
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Tool name exposed to the agent")
    domain: str = Field(..., description="Domain serving the tool (confluence, jira)")
    description: str = Field(..., description="Clear description for LLM usage")
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object", "properties": {}, "required": []},
        description="JSON Schema for input validation"
    )
    execution_type: ExecutionType = Field(default=ExecutionType.READ)


class ToolCall(BaseModel):
    """A request to execute a specific tool."""
    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    request_id: str


class TextContent(BaseModel):
    """Single text item of a tool response."""
    type: Literal["text"] = "text"
    text: str


class ToolResponse(BaseModel):
    """Uniform envelope returned for every completed tool call."""
    content: list[TextContent]

    @classmethod
    def from_result(cls, result: Any) -> "ToolResponse":
        """Wrap a handler result as one pretty-printed JSON text item."""
        return cls(content=[TextContent(text=json.dumps(result, indent=2, ensure_ascii=False))])


class RemoteError(BaseModel):
    """
    Failure reported by the remote service or the network.

    Carries either the structured error body of the remote response or
    the exception message. It is returned to the agent as data, never
    raised across the tool boundary.
    """
    error: Any

    def to_payload(self) -> dict[str, Any]:
        return {"error": self.error}


class ToolCallStatus(str, Enum):
    """Outcome of a tool call as recorded in the call log."""
    SUCCESS = "success"
    REMOTE_ERROR = "remote_error"
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"


class AuditEntry(BaseModel):
    """Call log entry for a single tool invocation."""
    id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    tool_name: str
    domain: Optional[str] = None
    execution_type: Optional[ExecutionType] = None
    arguments: dict[str, Any] = Field(default_factory=dict)

    status: ToolCallStatus
    error: Optional[str] = None
    execution_time_ms: float = 0

    request_id: str


class DomainConfig(BaseModel):
    """Configuration for an application domain."""
    name: str
    description: str
    api_path: str = Field(..., description="REST API prefix appended to the site URL")
    timeout_seconds: Optional[float] = 30.0
