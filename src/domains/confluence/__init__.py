"""Confluence Domain - CQL search and page content tools.

Talks to the Confluence Cloud REST API (``/wiki/rest/api``).
"""

from typing import Any, Optional

import httpx
from pydantic import Field

from shared.config import AtlassianSettings
from shared.logging import get_logger
from shared.models import (
    DomainConfig,
    ExecutionType,
    RemoteError,
    ToolDefinition,
)
from domains.base import RESTAdapter, ToolArguments, ToolHandler

logger = get_logger(__name__)

PAGE_EXPAND = "body.storage,version"


class CQLSearchArguments(ToolArguments):
    cql: str = Field(..., min_length=1)
    limit: int = Field(default=10, ge=1)


class GetPageArguments(ToolArguments):
    page_id: str = Field(..., alias="pageId", min_length=1)


class UpdatePageArguments(ToolArguments):
    page_id: str = Field(..., alias="pageId", min_length=1)
    content: str = Field(..., min_length=1)
    title: Optional[str] = None


class ConfluenceAdapter(RESTAdapter):
    """
    Confluence Domain Adapter.

    Provides tools for:
    - CQL search
    - Reading page storage content
    - Updating page content with version increment
    """

    argument_models = {
        "execute_cql_search": CQLSearchArguments,
        "get_page_content": GetPageArguments,
        "update_page_content": UpdatePageArguments,
    }

    def __init__(
        self,
        config: DomainConfig,
        credentials: AtlassianSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        super().__init__(config, credentials, transport)
        self._define_tools()

    def _define_tools(self) -> None:
        """Define all Confluence tools."""

        self._tools["execute_cql_search"] = ToolDefinition(
            name="execute_cql_search",
            domain=self.domain,
            description="Execute a CQL query on Confluence to search pages",
            input_schema={
                "type": "object",
                "properties": {
                    "cql": {
                        "type": "string",
                        "description": "CQL query string",
                        "minLength": 1
                    },
                    "limit": {
                        "type": "integer",
                        "description": "Number of results to return",
                        "default": 10,
                        "minimum": 1
                    }
                },
                "required": ["cql"]
            },
            execution_type=ExecutionType.READ
        )

        self._tools["get_page_content"] = ToolDefinition(
            name="get_page_content",
            domain=self.domain,
            description="Get the content of a Confluence page",
            input_schema={
                "type": "object",
                "properties": {
                    "pageId": {
                        "type": "string",
                        "description": "Confluence Page ID",
                        "minLength": 1
                    }
                },
                "required": ["pageId"]
            },
            execution_type=ExecutionType.READ
        )

        self._tools["update_page_content"] = ToolDefinition(
            name="update_page_content",
            domain=self.domain,
            description="Update the content of a Confluence page",
            input_schema={
                "type": "object",
                "properties": {
                    "pageId": {
                        "type": "string",
                        "description": "Confluence Page ID",
                        "minLength": 1
                    },
                    "content": {
                        "type": "string",
                        "description": "HTML content to update the page with",
                        "minLength": 1
                    },
                    "title": {
                        "type": "string",
                        "description": "Page title (optional, if you want to change it)"
                    }
                },
                "required": ["pageId", "content"]
            },
            execution_type=ExecutionType.WRITE
        )

    @property
    def tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    @property
    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "execute_cql_search": self._execute_cql_search,
            "get_page_content": self._get_page_content,
            "update_page_content": self._update_page_content,
        }

    async def _execute_cql_search(self, args: CQLSearchArguments) -> Any:
        return await self._request(
            "GET",
            "content/search",
            params={"cql": args.cql, "limit": args.limit}
        )

    async def _get_page_content(self, args: GetPageArguments) -> Any:
        return await self._fetch_page(args.page_id)

    async def _fetch_page(self, page_id: str) -> Any:
        return await self._request(
            "GET",
            f"content/{page_id}",
            params={"expand": PAGE_EXPAND}
        )

    async def _update_page_content(self, args: UpdatePageArguments) -> Any:
        """Replace the page body, bumping the version fetched just before."""
        current = await self._fetch_page(args.page_id)
        if isinstance(current, RemoteError):
            return current

        version = _version_number(current)
        if version is None:
            return RemoteError(error=f"Page {args.page_id} response has no version number")

        payload: dict[str, Any] = {
            "id": args.page_id,
            "type": current.get("type"),
            "title": args.title or current.get("title"),
            "body": {
                "storage": {
                    "value": args.content,
                    "representation": "storage",
                },
            },
            "version": {
                "number": version + 1,
            },
        }
        if "space" in current:
            payload["space"] = current["space"]

        logger.info(
            "Updating Confluence page",
            page_id=args.page_id,
            version=version + 1
        )
        return await self._request("PUT", f"content/{args.page_id}", json=payload)


def _version_number(page: Any) -> Optional[int]:
    if not isinstance(page, dict):
        return None
    version = page.get("version")
    if not isinstance(version, dict):
        return None
    number = version.get("number")
    if isinstance(number, bool) or not isinstance(number, int):
        return None
    return number


def register_confluence_domain(
    router,
    settings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> ConfluenceAdapter:
    """Register the Confluence domain with the MCP server."""
    config = DomainConfig(
        name="confluence",
        description="Confluence pages and CQL search",
        api_path=settings.confluence_api_path,
        timeout_seconds=settings.request_timeout_seconds
    )

    adapter = ConfluenceAdapter(config, settings.atlassian, transport)
    router.register_adapter(adapter)

    logger.info("Confluence domain registered", tool_count=len(adapter.tools))
    return adapter
