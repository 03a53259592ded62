"""
Configuration for the Teams MCP Server.
"""

import os

from teams_mcp import __version__


class Config:
    """Configuration class for MCP server."""

    SERVER_NAME: str = "teams-mcp"
    SERVER_VERSION: str = __version__

    # Public client registered for Microsoft Graph device-code sign-in
    CLIENT_ID: str = "14d82eec-204b-4c2f-b7e8-296a70dab67e"

    # Overridable for single-tenant apps or a local identity stub
    TENANT_ID: str = os.getenv("TEAMS_MCP_TENANT_ID", "common")
    LOGIN_URL: str = os.getenv(
        "TEAMS_MCP_LOGIN_URL", "https://login.microsoftonline.com"
    )
    GRAPH_API_URL: str = os.getenv(
        "TEAMS_MCP_GRAPH_URL", "https://graph.microsoft.com/v1.0"
    )

    LOG_LEVEL: str = os.getenv("TEAMS_MCP_LOG_LEVEL", "INFO")
    HTTP_TIMEOUT: float = 30.0
