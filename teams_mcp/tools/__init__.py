"""MCP tools for Microsoft Teams"""

from teams_mcp.tools.auth_tools import create_auth_tools
from teams_mcp.tools.users_tools import create_users_tools
from teams_mcp.tools.teams_tools import create_teams_tools
from teams_mcp.tools.chat_tools import create_chat_tools
from teams_mcp.tools.search_tools import create_search_tools

__all__ = [
    "create_auth_tools",
    "create_users_tools",
    "create_teams_tools",
    "create_chat_tools",
    "create_search_tools",
]
