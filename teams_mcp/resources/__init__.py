"""MCP resources for Microsoft Teams"""

from teams_mcp.resources.teams_resources import create_teams_resources

__all__ = ["create_teams_resources"]
