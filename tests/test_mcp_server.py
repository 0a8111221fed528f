"""Tests for MCP server components."""

import json

import pytest

from shared.errors import ToolValidationError, UnknownToolError
from shared.models import (
    DomainConfig,
    ExecutionType,
    ToolCall,
    ToolCallStatus,
    ToolDefinition,
)

EXPECTED_TOOLS = [
    "execute_cql_search",
    "get_page_content",
    "update_page_content",
    "execute_jql",
    "get_only_ticket_name_and_description",
    "create_ticket",
    "list_projects",
    "delete_ticket",
    "edit_ticket",
    "get_all_statuses",
    "assign_ticket",
    "query_assignable",
]


class TestToolRegistry:
    """Tests for the ToolRegistry."""

    def test_register_tool(self):
        """Test registering a tool."""
        from confluence_mcp.registry import ToolRegistry

        registry = ToolRegistry()
        tool = ToolDefinition(
            name="test_action",
            domain="test",
            description="A test tool"
        )

        registry.register(tool)

        assert registry.get("test_action") is tool
        assert "test_action" in registry
        assert "test" in registry.list_domains()

    def test_register_duplicate_tool_raises(self):
        """Test that registering duplicate tool raises error."""
        from confluence_mcp.registry import ToolRegistry

        registry = ToolRegistry()
        tool = ToolDefinition(name="test_action", domain="test", description="A test tool")

        registry.register(tool)

        with pytest.raises(ValueError, match="already registered"):
            registry.register(tool)

    def test_register_invalid_schema_raises(self):
        """Test that a required parameter must be declared."""
        from confluence_mcp.registry import ToolRegistry

        registry = ToolRegistry()
        tool = ToolDefinition(
            name="broken",
            domain="test",
            description="Broken",
            input_schema={"type": "object", "properties": {}, "required": ["missing"]}
        )

        with pytest.raises(ValueError, match="missing"):
            registry.register(tool)

    def test_register_many_is_all_or_nothing(self):
        """A name collision in a batch leaves the registry unchanged."""
        from confluence_mcp.registry import ToolRegistry

        registry = ToolRegistry()
        registry.register(ToolDefinition(name="taken", domain="domain1", description="Test"))

        with pytest.raises(ValueError, match="taken"):
            registry.register_many([
                ToolDefinition(name="fresh", domain="domain2", description="Test"),
                ToolDefinition(name="taken", domain="domain2", description="Test"),
            ])

        assert [t.name for t in registry.list_tools()] == ["taken"]
        assert "fresh" not in registry
        assert registry.list_domains() == ["domain1"]

    def test_register_many_rejects_repeated_names(self):
        from confluence_mcp.registry import ToolRegistry

        registry = ToolRegistry()
        tool = ToolDefinition(name="twice", domain="test", description="Test")

        with pytest.raises(ValueError, match="twice"):
            registry.register_many([tool, tool])

        assert registry.list_tools() == []

    def test_list_tools_keeps_registration_order(self):
        """Test listing tools in order, optionally by domain."""
        from confluence_mcp.registry import ToolRegistry

        registry = ToolRegistry()
        registry.register(ToolDefinition(name="b_action", domain="domain1", description="Test"))
        registry.register(ToolDefinition(name="a_action", domain="domain2", description="Test"))
        registry.register(ToolDefinition(name="c_action", domain="domain1", description="Test"))

        assert [t.name for t in registry.list_tools()] == ["b_action", "a_action", "c_action"]
        assert [t.name for t in registry.list_tools(domain="domain1")] == ["b_action", "c_action"]
        assert registry.get_tool_count() == {"domain1": 2, "domain2": 1}

    def test_validate_input(self):
        """Test input validation against schema."""
        from confluence_mcp.registry import ToolRegistry

        registry = ToolRegistry()
        registry.register(ToolDefinition(
            name="test_action",
            domain="test",
            description="Test tool",
            input_schema={
                "type": "object",
                "properties": {
                    "name": {"type": "string", "minLength": 1},
                    "count": {"type": "integer"}
                },
                "required": ["name"]
            }
        ))

        is_valid, errors = registry.validate_input("test_action", {"name": "test", "count": 5})
        assert is_valid
        assert errors == []

        is_valid, errors = registry.validate_input("test_action", {"count": 5})
        assert not is_valid
        assert "'name' is a required property" in errors[0]

        is_valid, errors = registry.validate_input("test_action", {"name": "", "count": "5"})
        assert not is_valid
        assert len(errors) == 2

    def test_validate_unknown_tool(self):
        from confluence_mcp.registry import ToolRegistry

        is_valid, errors = ToolRegistry().validate_input("nope", {})
        assert not is_valid
        assert "not found" in errors[0]


class TestAuditLogger:
    """Tests for the call log."""

    def test_entry_creation(self):
        """Test creating call log entries."""
        from confluence_mcp.audit import AuditLogger

        audit = AuditLogger()
        tool = ToolDefinition(
            name="get_page_content",
            domain="confluence",
            description="Test",
            execution_type=ExecutionType.READ
        )
        call = ToolCall(tool_name="get_page_content", arguments={"pageId": "1"}, request_id="req1")

        entry = audit.log(tool, call, ToolCallStatus.SUCCESS, execution_time_ms=12.5)

        assert entry.tool_name == "get_page_content"
        assert entry.domain == "confluence"
        assert entry.status == ToolCallStatus.SUCCESS
        assert entry.execution_time_ms == 12.5
        assert entry.request_id == "req1"

    def test_sensitive_data_redaction(self):
        """Test that sensitive arguments are redacted."""
        from confluence_mcp.audit import AuditLogger

        call = ToolCall(
            tool_name="unknown",
            arguments={"cql": "type=page", "api_key": "key123", "nested": {"token": "t"}},
            request_id="req1"
        )

        entry = AuditLogger().create_entry(None, call, ToolCallStatus.NOT_FOUND)

        assert entry.domain is None
        assert entry.arguments["cql"] == "type=page"
        assert entry.arguments["api_key"] == "[REDACTED]"
        assert entry.arguments["nested"]["token"] == "[REDACTED]"

    def test_redact_all(self):
        from confluence_mcp.audit import AuditLogger

        call = ToolCall(tool_name="x", arguments={"content": "<p>secret</p>"}, request_id="r")

        entry = AuditLogger(redact_all=True).create_entry(None, call, ToolCallStatus.SUCCESS)

        assert entry.arguments == {"content": "[REDACTED]"}

    def test_disabled_logger_emits_nothing(self):
        from confluence_mcp.audit import AuditLogger

        call = ToolCall(tool_name="x", request_id="r")
        assert AuditLogger(enabled=False).log(None, call, ToolCallStatus.SUCCESS) is None


class TestToolRouter:
    """Tests for the tool router."""

    def test_all_tools_registered(self, router):
        """Every tool is listed once, in a stable order."""
        assert [t.name for t in router.registry.list_tools()] == EXPECTED_TOOLS
        assert router.registry.list_domains() == ["confluence", "jira"]

    @pytest.mark.asyncio
    async def test_execute_unknown_tool(self, router, fake):
        """Unknown tool names fail the request without touching the network."""
        with pytest.raises(UnknownToolError, match="Unknown tool: nope"):
            await router.dispatch("nope", {})

        assert fake.requests == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "tool_name",
        [name for name in EXPECTED_TOOLS if name not in ("list_projects", "get_all_statuses")]
    )
    async def test_missing_required_arguments(self, router, fake, tool_name):
        """Missing required arguments fail before any remote call."""
        with pytest.raises(ToolValidationError):
            await router.dispatch(tool_name, {})

        assert len(fake.requests) == 0

    @pytest.mark.asyncio
    async def test_empty_required_string(self, router, fake):
        with pytest.raises(ToolValidationError, match="pageId"):
            await router.dispatch("get_page_content", {"pageId": ""})

        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_wrong_argument_type(self, router, fake):
        with pytest.raises(ToolValidationError, match="limit"):
            await router.dispatch("execute_cql_search", {"cql": "type=page", "limit": "many"})

        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_unexpected_argument_rejected(self, router, fake):
        with pytest.raises(ToolValidationError, match="unexpected"):
            await router.dispatch("get_page_content", {"pageId": "1", "unexpected": True})

        assert fake.requests == []

    @pytest.mark.asyncio
    async def test_remote_error_is_returned_as_content(self, router, fake):
        """A 404 succeeds at the protocol level with the error body as content."""
        body = {"statusCode": 404, "message": "No content found with id 42"}
        fake.add("GET", "/wiki/rest/api/content/42", status_code=404, body=body)

        response = await router.dispatch("get_page_content", {"pageId": "42"})

        assert len(response.content) == 1
        assert response.content[0].type == "text"
        assert json.loads(response.content[0].text) == {"error": body}

    @pytest.mark.asyncio
    async def test_result_is_pretty_printed(self, router, fake):
        fake.add("GET", "/rest/api/2/status", body=[{"name": "Open"}])

        response = await router.dispatch("get_all_statuses")

        assert response.content[0].text == json.dumps([{"name": "Open"}], indent=2)

    @pytest.mark.asyncio
    async def test_execute_with_call(self, router, fake):
        fake.add("GET", "/rest/api/2/user/assignable/search", body=[])

        call = ToolCall(
            tool_name="query_assignable",
            arguments={"project_key": "OPS"},
            request_id="req-7"
        )
        response = await router.execute(call)

        assert json.loads(response.content[0].text) == []
        assert len(fake.requests) == 1


class TestAdapterRegistration:
    """Tests for the one-handler-per-tool invariant."""

    def _adapter(self, tool_names, handler_names):
        from domains.base import BaseAdapter, ToolArguments

        class PartialAdapter(BaseAdapter):
            argument_models = {name: ToolArguments for name in tool_names}

            @property
            def tools(self):
                return [
                    ToolDefinition(name=name, domain=self.domain, description=name)
                    for name in tool_names
                ]

            @property
            def handlers(self):
                return {name: self._noop for name in handler_names}

            async def _noop(self, args):
                return {}

        return PartialAdapter(DomainConfig(name="test", description="Test", api_path="/"))

    def test_register_matching_adapter(self):
        from confluence_mcp.router import ToolRouter

        router = ToolRouter()
        router.register_adapter(self._adapter(["one", "two"], ["one", "two"]))

        assert [t.name for t in router.registry.list_tools()] == ["one", "two"]

    def test_handler_missing_raises(self):
        from confluence_mcp.router import ToolRouter

        router = ToolRouter()
        with pytest.raises(ValueError, match="two"):
            router.register_adapter(self._adapter(["one", "two"], ["one"]))

        assert router.registry.list_tools() == []

    def test_duplicate_domain_raises(self):
        from confluence_mcp.router import ToolRouter

        router = ToolRouter()
        router.register_adapter(self._adapter(["one"], ["one"]))

        with pytest.raises(ValueError, match="already has an adapter"):
            router.register_adapter(self._adapter(["other"], ["other"]))

    def test_tool_collision_registers_nothing(self):
        """An adapter whose tool name is taken adds none of its tools."""
        from confluence_mcp.router import ToolRouter

        router = ToolRouter()
        router.register_adapter(self._adapter(["one"], ["one"]))

        second = self._adapter(["two", "one"], ["two", "one"])
        second.domain = "other"
        with pytest.raises(ValueError, match="one"):
            router.register_adapter(second)

        assert [t.name for t in router.registry.list_tools()] == ["one"]
        assert [a.domain for a in router.adapters] == ["test"]
