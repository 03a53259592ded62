"""API clients for external services."""

from teams_mcp.api_clients.graph_client import (
    GraphAPIError,
    GraphAuthError,
    GraphClient,
)

__all__ = ["GraphAPIError", "GraphAuthError", "GraphClient"]
