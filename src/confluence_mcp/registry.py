"""Tool Registry for the MCP server.

Holds the static, ordered catalogue of tool descriptors answered on a
``tools/list`` request. Tools are registered once at startup.
"""

from typing import Any, Optional

from shared.logging import get_logger
from shared.models import ToolDefinition
from shared.schema import check_tool_schema, validate_schema

logger = get_logger(__name__)


class ToolRegistry:
    """
    Central registry for all MCP tools.

    Responsibilities:
    - Register tools from domains
    - Lookup tools by name
    - Validate tool arguments against their input schema
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}
        self._domains: set[str] = set()

    def register(self, tool: ToolDefinition) -> None:
        """
        Register a tool in the registry.

        Args:
            tool: Tool definition to register

        Raises:
            ValueError: If the name is already registered or the schema is invalid
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")

        check_tool_schema(tool.input_schema)

        self._tools[tool.name] = tool
        self._domains.add(tool.domain)

        logger.debug(
            "Tool registered",
            tool=tool.name,
            domain=tool.domain,
            execution_type=tool.execution_type.value
        )

    def register_many(self, tools: list[ToolDefinition]) -> None:
        """
        Register multiple tools at once.

        The batch is checked as a whole first, so a bad tool leaves the
        registry unchanged.

        Raises:
            ValueError: If any name is taken or repeated, or a schema is invalid
        """
        seen: set[str] = set()
        for tool in tools:
            if tool.name in self._tools or tool.name in seen:
                raise ValueError(f"Tool '{tool.name}' is already registered")
            check_tool_schema(tool.input_schema)
            seen.add(tool.name)

        for tool in tools:
            self.register(tool)

    def get(self, tool_name: str) -> Optional[ToolDefinition]:
        """Get a tool by its exact name."""
        return self._tools.get(tool_name)

    def __contains__(self, tool_name: str) -> bool:
        return tool_name in self._tools

    def list_tools(self, domain: Optional[str] = None) -> list[ToolDefinition]:
        """
        List registered tools in registration order.

        Args:
            domain: Filter by domain name

        Returns:
            List of tool definitions
        """
        tools = list(self._tools.values())

        if domain:
            tools = [t for t in tools if t.domain == domain]

        return tools

    def list_domains(self) -> list[str]:
        """List all registered domains."""
        return sorted(self._domains)

    def validate_input(
        self,
        tool_name: str,
        arguments: dict[str, Any]
    ) -> tuple[bool, list[str]]:
        """
        Validate arguments against the tool's input schema.

        Args:
            tool_name: Tool name
            arguments: Arguments to validate

        Returns:
            Tuple of (is_valid, list of error messages)
        """
        tool = self.get(tool_name)
        if not tool:
            return False, [f"Tool '{tool_name}' not found"]

        return validate_schema(arguments, tool.input_schema)

    def get_tool_count(self) -> dict[str, int]:
        """Get count of tools per domain."""
        counts: dict[str, int] = {}
        for tool in self._tools.values():
            counts[tool.domain] = counts.get(tool.domain, 0) + 1
        return counts
