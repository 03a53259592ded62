"""
Teams MCP Resources - Exposes joined teams for the assistant's context.

Resources are automatically available in the client's context when connected.
"""

import logging

import httpx
from fastmcp import FastMCP

from teams_mcp.api_clients import GraphAPIError, GraphAuthError
from teams_mcp.graph_service import GraphService

logger = logging.getLogger(__name__)


def create_teams_resources(mcp: FastMCP, graph: GraphService) -> None:
    """Add Teams resources to the MCP server."""

    @mcp.resource("teams://teams")
    def get_joined_teams() -> str:
        """
        List of Microsoft Teams and channels the signed-in user belongs to.

        Use these IDs when reading or sending channel messages.
        """
        try:
            client = graph.get_client()
        except GraphAuthError:
            return "Microsoft Graph not connected. Run the authenticate tool first."

        try:
            teams = client.list_teams()

            # Format as readable list
            lines = ["Joined Teams:", ""]
            for team in teams:
                lines.append(f"- {team.display_name} (id: {team.id})")
                for ch in client.list_channels(team.id):
                    lines.append(f"    - #{ch.display_name} (id: {ch.id})")

            return "\n".join(lines)
        except (GraphAPIError, httpx.HTTPError) as e:
            logger.error(f"Failed to fetch teams: {e}")
            return f"Error fetching teams: {str(e)}"
