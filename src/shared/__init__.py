"""Shared models, configuration, errors and logging for the Confluence MCP server."""

from shared.models import (
    ToolDefinition,
    ToolCall,
    ToolResponse,
    RemoteError,
    AuditEntry,
)
from shared.config import AtlassianSettings, Settings, load_settings
from shared.errors import (
    ConfigurationError,
    ToolError,
    ToolValidationError,
    UnknownToolError,
)
from shared.logging import get_logger, setup_logging

__all__ = [
    "ToolDefinition",
    "ToolCall",
    "ToolResponse",
    "RemoteError",
    "AuditEntry",
    "AtlassianSettings",
    "Settings",
    "load_settings",
    "ConfigurationError",
    "ToolError",
    "ToolValidationError",
    "UnknownToolError",
    "get_logger",
    "setup_logging",
]
