"""Base classes for domain adapters.

All adapters must:
- Parse tool arguments into a typed model before any remote call
- Translate tool calls into REST requests
- Return remote failures as RemoteError values instead of raising
- Hold no state besides their configuration and HTTP client
"""

import base64
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional

import httpx
from pydantic import BaseModel, ConfigDict, ValidationError

from shared.config import AtlassianSettings
from shared.errors import ToolValidationError, UnknownToolError
from shared.logging import get_logger
from shared.models import DomainConfig, RemoteError, ToolDefinition

logger = get_logger(__name__)


class ToolArguments(BaseModel):
    """Base for the validated argument model of a single tool."""
    model_config = ConfigDict(
        extra="forbid",
        populate_by_name=True,
        frozen=True,
        coerce_numbers_to_str=True,
    )


ToolHandler = Callable[[Any], Awaitable[Any]]


def basic_auth_header(email: str, token: str) -> str:
    """Return the ``Authorization`` value for HTTP basic auth."""
    credentials = f"{email}:{token}".encode("utf-8")
    return f"Basic {base64.b64encode(credentials).decode('ascii')}"


def format_validation_errors(error: ValidationError) -> list[str]:
    """Flatten pydantic errors into ``field: message`` strings."""
    messages = []
    for err in error.errors():
        location = ".".join(str(p) for p in err["loc"])
        messages.append(f"{location}: {err['msg']}" if location else err["msg"])
    return messages


class BaseAdapter(ABC):
    """
    Base class for domain adapters.

    Each adapter:
    - Handles one domain only
    - Declares one argument model and one handler per tool
    - Is stateless between calls
    """

    argument_models: dict[str, type[ToolArguments]] = {}

    def __init__(self, config: DomainConfig) -> None:
        self.config = config
        self.domain = config.name
        self._tools: dict[str, ToolDefinition] = {}

    @property
    @abstractmethod
    def tools(self) -> list[ToolDefinition]:
        """Return all tool definitions for this domain."""
        pass

    @property
    @abstractmethod
    def handlers(self) -> dict[str, ToolHandler]:
        """Return the handler coroutine for each tool name."""
        pass

    def get_tool(self, name: str) -> Optional[ToolDefinition]:
        """Get a tool definition by name."""
        return self._tools.get(name)

    def parse_arguments(self, action: str, arguments: dict[str, Any]) -> ToolArguments:
        """
        Build the typed argument model for a tool.

        Raises:
            UnknownToolError: If the adapter has no such tool
            ToolValidationError: If the arguments do not fit the model
        """
        model = self.argument_models.get(action)
        if model is None:
            raise UnknownToolError(action)

        try:
            return model.model_validate(arguments)
        except ValidationError as e:
            raise ToolValidationError(action, format_validation_errors(e)) from e

    async def execute(self, action: str, arguments: ToolArguments) -> Any:
        """
        Execute a tool action with already validated arguments.

        Returns:
            The remote payload, or a RemoteError describing the failure
        """
        handler = self.handlers.get(action)
        if handler is None:
            raise UnknownToolError(action)

        logger.debug("Domain action", domain=self.domain, action=action)
        return await handler(arguments)

    async def close(self) -> None:
        """Release adapter resources."""
        pass


class RESTAdapter(BaseAdapter):
    """
    Base adapter for Atlassian REST APIs.

    Every request carries the basic-auth header built from the configured
    credentials. Remote failures are normalized into RemoteError values.
    """

    def __init__(
        self,
        config: DomainConfig,
        credentials: AtlassianSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> None:
        super().__init__(config)
        self.credentials = credentials
        self.base_url = f"{credentials.base_url}/{config.api_path.strip('/')}"
        self.timeout = config.timeout_seconds
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": basic_auth_header(
                self.credentials.api_mail,
                self.credentials.api_key.get_secret_value()
            ),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers(),
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any
    ) -> Any:
        """
        Make an HTTP request to the backend.

        Args:
            method: HTTP method
            path: Path relative to the domain's API prefix
            **kwargs: Passed through to ``httpx.AsyncClient.request``

        Returns:
            Parsed JSON body, ``{"status_code": ...}`` for an empty body,
            or a RemoteError for non-2xx statuses and network faults
        """
        client = await self._get_client()

        try:
            response = await client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                "Remote request failed",
                domain=self.domain,
                method=method,
                path=path,
                status_code=e.response.status_code
            )
            if not e.response.content:
                return RemoteError(error=str(e))
            return RemoteError(error=_response_body(e.response))
        except httpx.RequestError as e:
            logger.warning(
                "Remote request error",
                domain=self.domain,
                method=method,
                path=path,
                error=str(e)
            )
            return RemoteError(error=str(e) or type(e).__name__)

        if not response.content:
            return {"status_code": response.status_code}
        return _response_body(response)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
