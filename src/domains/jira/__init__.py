"""Jira Domain - JQL search and ticket management tools.

Talks to the Jira Cloud REST API (``/rest/api/2``), where issue
descriptions are plain strings. JQL searches go to ``search/jql``, which
replaced the retired ``search`` endpoint on Jira Cloud.
"""

from typing import Any, Optional

import httpx
from pydantic import Field, model_validator

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


def _number_of_results_schema() -> dict[str, Any]:
    return {
        "type": "integer",
        "description": "Number of results to return",
        "default": 1,
        "minimum": 1
    }


def _issue_schema() -> dict[str, Any]:
    return {
        "type": "string",
        "description": "Issue id or key (e.g. PROJ-123)",
        "minLength": 1
    }


class JQLArguments(ToolArguments):
    jql: str = Field(..., min_length=1)
    number_of_results: int = Field(default=1, ge=1)


class ListArguments(ToolArguments):
    number_of_results: int = Field(default=1, ge=1)


class CreateTicketArguments(ToolArguments):
    project_key: str = Field(..., alias="project.key", min_length=1)
    summary: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    issuetype_name: str = Field(..., alias="issuetype.name", min_length=1)
    parent: Optional[str] = Field(default=None, min_length=1)


class IssueArguments(ToolArguments):
    issue_id_or_key: str = Field(..., alias="issueIdOrKey", min_length=1)


class EditTicketArguments(ToolArguments):
    issue_id_or_key: str = Field(..., alias="issueIdOrKey", min_length=1)
    summary: Optional[str] = None
    description: Optional[str] = None
    labels: Optional[list[str]] = None
    parent: Optional[str] = Field(default=None, min_length=1)

    @model_validator(mode="after")
    def _has_changes(self) -> "EditTicketArguments":
        if all(v is None for v in (self.summary, self.description, self.labels, self.parent)):
            raise ValueError("at least one of summary, description, labels or parent is required")
        return self


class AssignTicketArguments(ToolArguments):
    account_id: str = Field(..., alias="accountId", min_length=1)
    issue_id_or_key: str = Field(..., alias="issueIdOrKey", min_length=1)


class AssignableArguments(ToolArguments):
    project_key: str = Field(..., min_length=1)


class JiraAdapter(RESTAdapter):
    """
    Jira Domain Adapter.

    Provides tools for:
    - JQL search (full issues or summary/description only)
    - Ticket create, edit, delete and assignment
    - Project, status and assignable user listings
    """

    argument_models = {
        "execute_jql": JQLArguments,
        "get_only_ticket_name_and_description": JQLArguments,
        "create_ticket": CreateTicketArguments,
        "list_projects": ListArguments,
        "delete_ticket": IssueArguments,
        "edit_ticket": EditTicketArguments,
        "get_all_statuses": ListArguments,
        "assign_ticket": AssignTicketArguments,
        "query_assignable": AssignableArguments,
    }

    def __init__(
        self,
        config: DomainConfig,
        credentials: AtlassianSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        search_path: str = "search/jql"
    ) -> None:
        super().__init__(config, credentials, transport)
        self.search_path = search_path.strip("/")
        self._define_tools()

    def _define_tools(self) -> None:
        """Define all Jira tools."""

        self._tools["execute_jql"] = ToolDefinition(
            name="execute_jql",
            domain=self.domain,
            description="Execute a JQL query on Jira and return the matching issues",
            input_schema={
                "type": "object",
                "properties": {
                    "jql": {
                        "type": "string",
                        "description": "JQL query string",
                        "minLength": 1
                    },
                    "number_of_results": _number_of_results_schema()
                },
                "required": ["jql"]
            }
        )

        self._tools["get_only_ticket_name_and_description"] = ToolDefinition(
            name="get_only_ticket_name_and_description",
            domain=self.domain,
            description=(
                "Execute a JQL query on Jira and return only the key, summary "
                "and description of each matching issue"
            ),
            input_schema={
                "type": "object",
                "properties": {
                    "jql": {
                        "type": "string",
                        "description": "JQL query string",
                        "minLength": 1
                    },
                    "number_of_results": _number_of_results_schema()
                },
                "required": ["jql"]
            }
        )

        self._tools["create_ticket"] = ToolDefinition(
            name="create_ticket",
            domain=self.domain,
            description="Create a Jira ticket",
            input_schema={
                "type": "object",
                "properties": {
                    "project.key": {
                        "type": "string",
                        "description": "Key of the project to create the ticket in",
                        "minLength": 1
                    },
                    "summary": {
                        "type": "string",
                        "description": "Ticket summary (title)",
                        "minLength": 1
                    },
                    "description": {
                        "type": "string",
                        "description": "Ticket description",
                        "minLength": 1
                    },
                    "issuetype.name": {
                        "type": "string",
                        "description": "Issue type name (e.g. Task, Bug, Story)",
                        "minLength": 1
                    },
                    "parent": {
                        "type": "string",
                        "description": "Key of the parent issue (optional)",
                        "minLength": 1
                    }
                },
                "required": ["project.key", "summary", "description", "issuetype.name"]
            },
            execution_type=ExecutionType.WRITE
        )

        self._tools["list_projects"] = ToolDefinition(
            name="list_projects",
            domain=self.domain,
            description="List the Jira projects visible to the configured account",
            input_schema={
                "type": "object",
                "properties": {
                    "number_of_results": _number_of_results_schema()
                },
                "required": []
            }
        )

        self._tools["delete_ticket"] = ToolDefinition(
            name="delete_ticket",
            domain=self.domain,
            description="Delete a Jira ticket",
            input_schema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": _issue_schema()
                },
                "required": ["issueIdOrKey"]
            },
            execution_type=ExecutionType.WRITE
        )

        self._tools["edit_ticket"] = ToolDefinition(
            name="edit_ticket",
            domain=self.domain,
            description="Edit the summary, description, labels or parent of a Jira ticket",
            input_schema={
                "type": "object",
                "properties": {
                    "issueIdOrKey": _issue_schema(),
                    "summary": {
                        "type": "string",
                        "description": "New summary"
                    },
                    "description": {
                        "type": "string",
                        "description": "New description"
                    },
                    "labels": {
                        "type": "array",
                        "items": {"type": "string"},
                        "description": "Labels replacing the current ones"
                    },
                    "parent": {
                        "type": "string",
                        "description": "Key of the new parent issue",
                        "minLength": 1
                    }
                },
                "required": ["issueIdOrKey"]
            },
            execution_type=ExecutionType.WRITE
        )

        self._tools["get_all_statuses"] = ToolDefinition(
            name="get_all_statuses",
            domain=self.domain,
            description="List the issue statuses defined in Jira",
            input_schema={
                "type": "object",
                "properties": {
                    "number_of_results": _number_of_results_schema()
                },
                "required": []
            }
        )

        self._tools["assign_ticket"] = ToolDefinition(
            name="assign_ticket",
            domain=self.domain,
            description="Assign a Jira ticket to a user",
            input_schema={
                "type": "object",
                "properties": {
                    "accountId": {
                        "type": "string",
                        "description": "Account id of the assignee",
                        "minLength": 1
                    },
                    "issueIdOrKey": _issue_schema()
                },
                "required": ["accountId", "issueIdOrKey"]
            },
            execution_type=ExecutionType.WRITE
        )

        self._tools["query_assignable"] = ToolDefinition(
            name="query_assignable",
            domain=self.domain,
            description="List the users that can be assigned to issues of a project",
            input_schema={
                "type": "object",
                "properties": {
                    "project_key": {
                        "type": "string",
                        "description": "Project key",
                        "minLength": 1
                    }
                },
                "required": ["project_key"]
            }
        )

    @property
    def tools(self) -> list[ToolDefinition]:
        return list(self._tools.values())

    @property
    def handlers(self) -> dict[str, ToolHandler]:
        return {
            "execute_jql": self._execute_jql,
            "get_only_ticket_name_and_description": self._get_names_and_descriptions,
            "create_ticket": self._create_ticket,
            "list_projects": self._list_projects,
            "delete_ticket": self._delete_ticket,
            "edit_ticket": self._edit_ticket,
            "get_all_statuses": self._get_all_statuses,
            "assign_ticket": self._assign_ticket,
            "query_assignable": self._query_assignable,
        }

    async def _execute_jql(self, args: JQLArguments) -> Any:
        return await self._request(
            "GET",
            self.search_path,
            params={"jql": args.jql, "maxResults": args.number_of_results}
        )

    async def _get_names_and_descriptions(self, args: JQLArguments) -> Any:
        result = await self._request(
            "GET",
            self.search_path,
            params={
                "jql": args.jql,
                "maxResults": args.number_of_results,
                "fields": "summary,description",
            }
        )
        if isinstance(result, RemoteError) or not isinstance(result, dict):
            return result

        issues = []
        for issue in result.get("issues") or []:
            if not isinstance(issue, dict):
                continue
            fields = issue.get("fields")
            if not isinstance(fields, dict):
                fields = {}
            issues.append({
                "key": issue.get("key"),
                "summary": fields.get("summary"),
                "description": fields.get("description"),
            })
        return issues

    async def _create_ticket(self, args: CreateTicketArguments) -> Any:
        fields: dict[str, Any] = {
            "project": {"key": args.project_key},
            "summary": args.summary,
            "description": args.description,
            "issuetype": {"name": args.issuetype_name},
        }
        if args.parent is not None:
            fields["parent"] = {"key": args.parent}

        logger.info("Creating Jira ticket", project=args.project_key)
        return await self._request("POST", "issue", json={"fields": fields})

    async def _list_projects(self, args: ListArguments) -> Any:
        return await self._request(
            "GET",
            "project/search",
            params={"maxResults": args.number_of_results}
        )

    async def _delete_ticket(self, args: IssueArguments) -> Any:
        logger.info("Deleting Jira ticket", issue=args.issue_id_or_key)
        return await self._request("DELETE", f"issue/{args.issue_id_or_key}")

    async def _edit_ticket(self, args: EditTicketArguments) -> Any:
        fields: dict[str, Any] = {}
        if args.summary is not None:
            fields["summary"] = args.summary
        if args.description is not None:
            fields["description"] = args.description
        if args.labels is not None:
            fields["labels"] = args.labels
        if args.parent is not None:
            fields["parent"] = {"key": args.parent}

        return await self._request(
            "PUT",
            f"issue/{args.issue_id_or_key}",
            json={"fields": fields}
        )

    async def _get_all_statuses(self, args: ListArguments) -> Any:
        # The status endpoint is not paginated
        result = await self._request("GET", "status")
        if isinstance(result, list):
            return result[:args.number_of_results]
        return result

    async def _assign_ticket(self, args: AssignTicketArguments) -> Any:
        return await self._request(
            "PUT",
            f"issue/{args.issue_id_or_key}/assignee",
            json={"accountId": args.account_id}
        )

    async def _query_assignable(self, args: AssignableArguments) -> Any:
        return await self._request(
            "GET",
            "user/assignable/search",
            params={"project": args.project_key}
        )


def register_jira_domain(
    router,
    settings,
    transport: Optional[httpx.AsyncBaseTransport] = None
) -> JiraAdapter:
    """Register the Jira domain with the MCP server."""
    config = DomainConfig(
        name="jira",
        description="Jira issues, projects and statuses",
        api_path=settings.jira_api_path,
        timeout_seconds=settings.request_timeout_seconds
    )

    adapter = JiraAdapter(
        config,
        settings.atlassian,
        transport,
        search_path=settings.jira_search_path
    )
    router.register_adapter(adapter)

    logger.info("Jira domain registered", tool_count=len(adapter.tools))
    return adapter
