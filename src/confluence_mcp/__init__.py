"""Confluence MCP Server - tool registry, dispatch and stdio transport.

Registers the Confluence and Jira tools, validates and routes tool calls
to the domain adapters, and logs every call.
"""

from confluence_mcp.registry import ToolRegistry
from confluence_mcp.router import ToolRouter
from confluence_mcp.audit import AuditLogger

__all__ = [
    "ToolRegistry",
    "ToolRouter",
    "AuditLogger",
]
