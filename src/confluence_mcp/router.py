"""Tool Router for the MCP server.

Resolves tool calls by name, validates arguments and routes them to the
domain adapter that owns the tool. Unknown tools and invalid arguments
are raised to the caller; remote failures come back as data inside a
normal response envelope.
"""

import time
import uuid
from typing import Any, Optional

from shared.errors import ToolValidationError, UnknownToolError
from shared.logging import bind_context, clear_context, get_logger
from shared.models import (
    RemoteError,
    ToolCall,
    ToolCallStatus,
    ToolResponse,
)
from confluence_mcp.audit import AuditLogger
from confluence_mcp.registry import ToolRegistry
from domains.base import BaseAdapter

logger = get_logger(__name__)


class ToolRouter:
    """
    Routes tool calls to the appropriate domain adapter.

    Responsibilities:
    - Enforce one handler per registered tool
    - Validate tool calls against argument models and schemas
    - Invoke exactly one handler per call, without retries
    - Log every call
    """

    def __init__(
        self,
        registry: Optional[ToolRegistry] = None,
        audit_logger: Optional[AuditLogger] = None
    ) -> None:
        self.registry = registry or ToolRegistry()
        self.audit_logger = audit_logger or AuditLogger()
        self._adapters: dict[str, BaseAdapter] = {}

    def register_adapter(self, adapter: BaseAdapter) -> None:
        """
        Register a domain adapter and its tools.

        Args:
            adapter: Adapter serving one domain

        Raises:
            ValueError: If the domain is already registered, or the adapter's
                tools, argument models and handlers do not match one-to-one
        """
        if adapter.domain in self._adapters:
            raise ValueError(f"Domain '{adapter.domain}' already has an adapter")

        tool_names = {tool.name for tool in adapter.tools}
        handler_names = set(adapter.handlers)
        model_names = set(adapter.argument_models)
        if not tool_names == handler_names == model_names:
            mismatched = sorted((tool_names ^ handler_names) | (tool_names ^ model_names))
            raise ValueError(
                f"Adapter '{adapter.domain}' tools and handlers do not match: {mismatched}"
            )

        for tool in adapter.tools:
            if tool.domain != adapter.domain:
                raise ValueError(f"Tool '{tool.name}' does not belong to domain '{adapter.domain}'")

        self.registry.register_many(adapter.tools)
        self._adapters[adapter.domain] = adapter
        logger.info("Adapter registered", domain=adapter.domain, tool_count=len(tool_names))

    @property
    def adapters(self) -> list[BaseAdapter]:
        return list(self._adapters.values())

    async def dispatch(self, tool_name: str, arguments: Optional[dict[str, Any]] = None) -> ToolResponse:
        """Execute a tool by name with a fresh request id."""
        call = ToolCall(
            tool_name=tool_name,
            arguments=arguments or {},
            request_id=str(uuid.uuid4())
        )
        return await self.execute(call)

    async def execute(self, call: ToolCall) -> ToolResponse:
        """
        Execute a tool call.

        Args:
            call: Tool call request

        Returns:
            Response envelope holding the pretty-printed result or RemoteError

        Raises:
            UnknownToolError: If no tool is registered under the name
            ToolValidationError: If the arguments are missing or malformed
        """
        start_time = time.perf_counter()
        tool_name = call.tool_name
        bind_context(request_id=call.request_id, tool=tool_name)

        try:
            logger.debug("Executing tool")

            tool = self.registry.get(tool_name)
            if not tool:
                self.audit_logger.log(
                    None, call, ToolCallStatus.NOT_FOUND, error=f"Unknown tool: {tool_name}"
                )
                raise UnknownToolError(tool_name)

            adapter = self._adapters[tool.domain]

            try:
                # Parse first so JSON numbers and numeric strings are coerced
                # before the schema check sees them
                arguments = adapter.parse_arguments(tool_name, call.arguments)
                is_valid, errors = self.registry.validate_input(
                    tool_name, arguments.model_dump(by_alias=True, exclude_none=True)
                )
                if not is_valid:
                    raise ToolValidationError(tool_name, errors)
            except ToolValidationError as e:
                self.audit_logger.log(
                    tool, call, ToolCallStatus.VALIDATION_ERROR, error=str(e)
                )
                raise

            try:
                result = await adapter.execute(tool_name, arguments)
            except Exception:
                logger.error("Tool handler crashed", exc_info=True)
                raise

            execution_time_ms = (time.perf_counter() - start_time) * 1000

            if isinstance(result, RemoteError):
                self.audit_logger.log(
                    tool,
                    call,
                    ToolCallStatus.REMOTE_ERROR,
                    error=str(result.error),
                    execution_time_ms=execution_time_ms
                )
                return ToolResponse.from_result(result.to_payload())

            self.audit_logger.log(
                tool, call, ToolCallStatus.SUCCESS, execution_time_ms=execution_time_ms
            )
            return ToolResponse.from_result(result)
        finally:
            clear_context()

    async def close(self) -> None:
        """Close all adapter resources."""
        for adapter in self._adapters.values():
            await adapter.close()
