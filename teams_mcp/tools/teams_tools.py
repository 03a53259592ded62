"""
Teams Tools - Teams, channels and channel messages.

These tools require Microsoft Graph authentication.
Sign in using the authenticate tool first.
"""

import logging
from typing import Literal

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from teams_mcp.api_clients import GraphAPIError
from teams_mcp.graph_service import GraphService
from teams_mcp.tools.users_tools import _get_client

logger = logging.getLogger(__name__)


def create_teams_tools(mcp: FastMCP, graph: GraphService) -> None:
    """Add Teams and channel tools to the MCP server."""

    @mcp.tool(tags={"teams"})
    def list_teams() -> dict:
        """
        List the Microsoft Teams the signed-in user is a member of.

        Returns team names and IDs. Use a team ID with list_channels.
        """
        try:
            teams = _get_client(graph).list_teams()

            return {
                "count": len(teams),
                "teams": [team.model_dump() for team in teams],
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to list teams: {str(e)}")

    @mcp.tool(tags={"teams", "channels"})
    def list_channels(
        team_id: str = Field(..., description="Team ID (from list_teams)"),
    ) -> dict:
        """
        List channels in a team.
        """
        try:
            channels = _get_client(graph).list_channels(team_id)

            return {
                "team_id": team_id,
                "count": len(channels),
                "channels": [ch.model_dump() for ch in channels],
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to list channels: {str(e)}")

    @mcp.tool(tags={"teams", "channels", "messaging"})
    def get_channel_messages(
        team_id: str = Field(..., description="Team ID (from list_teams)"),
        channel_id: str = Field(..., description="Channel ID (from list_channels)"),
        limit: int = Field(
            default=20,
            description="Maximum number of messages to return (default: 20, max: 50)",
        ),
    ) -> dict:
        """
        Get recent messages from a team channel.

        Message bodies are returned as plain text.
        """
        try:
            messages = _get_client(graph).list_channel_messages(
                team_id, channel_id, limit=limit
            )

            return {
                "count": len(messages),
                "messages": [m.model_dump(mode="json") for m in messages],
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to get channel messages: {str(e)}")

    @mcp.tool(tags={"teams", "channels", "messaging"})
    def send_channel_message(
        team_id: str = Field(..., description="Team ID (from list_teams)"),
        channel_id: str = Field(..., description="Channel ID (from list_channels)"),
        message: str = Field(..., description="Message text to post"),
        importance: Literal["normal", "high", "urgent"] = Field(
            default="normal",
            description="Message importance (default: normal)",
        ),
    ) -> dict:
        """
        Post a new message to a team channel.
        """
        try:
            sent = _get_client(graph).send_channel_message(
                team_id, channel_id, message, importance=importance
            )

            return {
                "success": True,
                "message_id": sent.id,
                "web_url": sent.web_url,
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to send channel message: {str(e)}")

    @mcp.tool(tags={"teams", "users"})
    def list_team_members(
        team_id: str = Field(..., description="Team ID (from list_teams)"),
    ) -> dict:
        """
        List the members of a team and their roles (owner, member, guest).
        """
        try:
            members = _get_client(graph).list_team_members(team_id)

            return {
                "team_id": team_id,
                "count": len(members),
                "members": [m.model_dump() for m in members],
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to list team members: {str(e)}")
