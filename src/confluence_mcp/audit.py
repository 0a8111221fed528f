"""Call log for the MCP server.

Emits one structured log record per tool call: tool, arguments, outcome
and duration. Records go to the log stream only; nothing is stored.
"""

import uuid
from typing import Any, Optional

from shared.logging import get_logger
from shared.models import (
    AuditEntry,
    ToolCall,
    ToolCallStatus,
    ToolDefinition,
)

logger = get_logger(__name__)


class AuditLogger:
    """
    Call logger for MCP tool executions.

    Argument values whose key looks like a secret are redacted. With
    ``redact_all`` every argument value is replaced, which keeps page and
    ticket content out of the logs.
    """

    # Parameters that should be redacted in call logs
    SENSITIVE_PARAMS = {"password", "token", "secret", "api_key", "apikey", "credential"}

    def __init__(self, enabled: bool = True, redact_all: bool = False) -> None:
        self.enabled = enabled
        self.redact_all = redact_all

    def _redact_sensitive(self, params: dict[str, Any]) -> dict[str, Any]:
        """Redact sensitive parameters from call logs."""
        redacted = {}
        for key, value in params.items():
            if self.redact_all or key.lower() in self.SENSITIVE_PARAMS:
                redacted[key] = "[REDACTED]"
            elif isinstance(value, dict):
                redacted[key] = self._redact_sensitive(value)
            else:
                redacted[key] = value
        return redacted

    def create_entry(
        self,
        tool: Optional[ToolDefinition],
        call: ToolCall,
        status: ToolCallStatus,
        error: Optional[str] = None,
        execution_time_ms: float = 0
    ) -> AuditEntry:
        """
        Create a call log entry.

        Args:
            tool: Tool definition, None when the name was not registered
            call: Tool call request
            status: Outcome of the call
            error: Error message, if any
            execution_time_ms: Wall time spent on the call

        Returns:
            Call log entry
        """
        return AuditEntry(
            id=str(uuid.uuid4()),
            tool_name=call.tool_name,
            domain=tool.domain if tool else None,
            execution_type=tool.execution_type if tool else None,
            arguments=self._redact_sensitive(call.arguments),
            status=status,
            error=error,
            execution_time_ms=execution_time_ms,
            request_id=call.request_id,
        )

    def log(
        self,
        tool: Optional[ToolDefinition],
        call: ToolCall,
        status: ToolCallStatus,
        error: Optional[str] = None,
        execution_time_ms: float = 0
    ) -> Optional[AuditEntry]:
        """Log a tool execution and return the entry that was emitted."""
        if not self.enabled:
            return None

        entry = self.create_entry(tool, call, status, error, execution_time_ms)

        log = logger.info if entry.status == ToolCallStatus.SUCCESS else logger.warning
        log(
            "Tool executed",
            audit_id=entry.id,
            tool=entry.tool_name,
            domain=entry.domain,
            status=entry.status.value,
            arguments=entry.arguments,
            error=entry.error,
            execution_time_ms=round(entry.execution_time_ms, 2)
        )
        return entry
