"""Exceptions raised at the protocol boundary.

Remote failures are not exceptions: adapters return them as
``shared.models.RemoteError`` values.
"""


class ToolError(Exception):
    """Base exception for tool call failures reported to the caller."""
    pass


class UnknownToolError(ToolError):
    """No tool is registered under the requested name."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ToolValidationError(ToolError):
    """Tool arguments are missing or malformed."""

    def __init__(self, tool_name: str, errors: list[str]) -> None:
        super().__init__(f"Invalid arguments for '{tool_name}': {'; '.join(errors)}")
        self.tool_name = tool_name
        self.errors = errors


class ConfigurationError(Exception):
    """Process configuration is missing or invalid."""
    pass
