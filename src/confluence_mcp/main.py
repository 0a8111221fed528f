"""MCP Server - stdio application.

Exposes the registered Confluence and Jira tools over the Model Context
Protocol on stdin/stdout. One process serves one session; requests are
handled one at a time.
"""

import argparse
import asyncio
import sys
from typing import Any, Optional

import httpx
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool, ToolAnnotations

from shared.config import Settings, load_settings
from shared.errors import ConfigurationError
from shared.logging import get_logger, setup_logging
from shared.models import ExecutionType, ToolDefinition
from confluence_mcp.audit import AuditLogger
from confluence_mcp.router import ToolRouter
from domains import load_all_domains

logger = get_logger(__name__)

SERVER_NAME = "Confluence communication server"
SERVER_VERSION = "0.1.0"


def to_mcp_tool(tool: ToolDefinition) -> Tool:
    """Convert a registry entry into the MCP tool descriptor."""
    read_only = tool.execution_type == ExecutionType.READ
    return Tool(
        name=tool.name,
        description=tool.description,
        inputSchema=tool.input_schema,
        annotations=ToolAnnotations(
            readOnlyHint=read_only,
            destructiveHint=not read_only,
            openWorldHint=True,
        ),
    )


def create_router(
    settings: Settings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> ToolRouter:
    """Build the router with every domain registered."""
    router = ToolRouter(audit_logger=AuditLogger(redact_all=settings.redact_arguments))
    load_all_domains(router, settings, transport)
    return router


def create_server(router: ToolRouter) -> Server:
    """Create the MCP server and bind its handlers to the router."""
    server = Server(SERVER_NAME, version=SERVER_VERSION)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """Return available tools."""
        return [to_mcp_tool(tool) for tool in router.registry.list_tools()]

    # Validation belongs to the router so that errors name the tool's own fields
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[dict[str, Any]]) -> list[TextContent]:
        """Dispatch a tool call; raised errors become isError results."""
        response = await router.dispatch(name, arguments or {})
        return [TextContent(type="text", text=item.text) for item in response.content]

    return server


async def serve(settings: Settings) -> None:
    """Run the server on stdio until the client closes the stream."""
    router = create_router(settings)
    server = create_server(router)

    registry = router.registry
    logger.info(
        "MCP Server started",
        domains=registry.list_domains(),
        tool_count=sum(registry.get_tool_count().values()),
        base_url=settings.atlassian.base_url
    )

    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options()
            )
    finally:
        logger.info("Shutting down MCP Server")
        await router.close()


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="confluence-mcp",
        description="Confluence and Jira tools over the Model Context Protocol (stdio)"
    )
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Override the configured log level"
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> None:
    """Run the MCP Server."""
    args = parse_args(argv)

    try:
        settings = load_settings(args.config)
    except ConfigurationError as e:
        setup_logging(args.log_level or "INFO")
        logger.error("Configuration error", error=str(e))
        sys.exit(1)

    setup_logging(args.log_level or settings.log_level, json_output=settings.json_logs)

    try:
        asyncio.run(serve(settings))
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.error("Server error", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
