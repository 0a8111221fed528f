"""Configuration management for the Confluence MCP server.

Credentials come from the environment (``CONFLUENCE_URL``,
``CONFLUENCE_API_MAIL``, ``CONFLUENCE_API_KEY``). Server options can be
overridden by environment variables or an optional YAML file. Settings
are loaded once at startup and passed explicitly to the components.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shared.errors import ConfigurationError

DEFAULT_CONFIG_PATH = "config/settings.yaml"


class AtlassianSettings(BaseSettings):
    """Atlassian site URL and basic-auth credentials."""
    url: str = Field(..., min_length=1, description="Site root, e.g. https://example.atlassian.net")
    api_mail: str = Field(..., min_length=1, description="Account email used for basic auth")
    api_key: SecretStr = Field(..., description="API token used for basic auth")

    @field_validator("api_key")
    @classmethod
    def _api_key_not_empty(cls, value: SecretStr) -> SecretStr:
        if not value.get_secret_value():
            raise ValueError("API token must not be empty")
        return value

    model_config = SettingsConfigDict(
        env_prefix="CONFLUENCE_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @property
    def base_url(self) -> str:
        return self.url.rstrip("/")


class Settings(BaseSettings):
    """Main application settings."""
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=False)
    request_timeout_seconds: Optional[float] = Field(default=30.0, gt=0)
    confluence_api_path: str = Field(default="/wiki/rest/api")
    jira_api_path: str = Field(default="/rest/api/2")
    jira_search_path: str = Field(default="search/jql", min_length=1)
    redact_arguments: bool = Field(default=False)

    atlassian: AtlassianSettings = Field(default_factory=AtlassianSettings)

    model_config = SettingsConfigDict(
        env_prefix="CONFLUENCE_MCP_",
        env_file=".env",
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file, falling back to the environment."""
        return cls(**load_yaml_config(path))


def load_yaml_config(path: str | Path) -> dict[str, Any]:
    """Load a YAML configuration file."""
    path = Path(path)
    if not path.exists():
        return {}

    with open(path) as f:
        return yaml.safe_load(f) or {}


def load_settings(config_path: Optional[str | Path] = None) -> Settings:
    """
    Load and validate the process configuration.

    Args:
        config_path: YAML file to overlay; defaults to ``$CONFLUENCE_MCP_CONFIG``
            or ``config/settings.yaml``

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If credentials are missing or a value is invalid
    """
    path = config_path or os.environ.get("CONFLUENCE_MCP_CONFIG", DEFAULT_CONFIG_PATH)
    try:
        return Settings.from_yaml(path)
    except ValidationError as e:
        fields = sorted({".".join(str(p) for p in err["loc"]) for err in e.errors()})
        raise ConfigurationError(
            f"Invalid configuration ({', '.join(fields)}). "
            "Set CONFLUENCE_URL, CONFLUENCE_API_MAIL and CONFLUENCE_API_KEY."
        ) from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse config file {path}: {e}") from e
