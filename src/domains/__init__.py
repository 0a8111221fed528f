"""Application Domains.

Each domain contains:
- Tool definitions
- Typed argument models
- Adapter implementation talking to one REST API

Domains are isolated: no cross-domain calls, no shared state beyond the
credentials they receive at startup.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    import httpx

    from confluence_mcp.router import ToolRouter
    from domains.base import BaseAdapter
    from shared.config import Settings


def load_all_domains(
    router: "ToolRouter",
    settings: "Settings",
    transport: Optional["httpx.AsyncBaseTransport"] = None
) -> list["BaseAdapter"]:
    """
    Load and register all application domains.

    This is called at server startup to register all domain tools and
    adapters. The returned adapters must be closed on shutdown.
    """
    from domains.confluence import register_confluence_domain
    from domains.jira import register_jira_domain

    return [
        register_confluence_domain(router, settings, transport),
        register_jira_domain(router, settings, transport),
    ]


__all__ = ["load_all_domains"]
