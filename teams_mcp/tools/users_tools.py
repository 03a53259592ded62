"""
User Tools - Directory lookups.

These tools require Microsoft Graph authentication.
Sign in using the authenticate tool first.
"""

import logging

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from teams_mcp.api_clients import GraphAPIError, GraphClient
from teams_mcp.graph_service import GraphService

logger = logging.getLogger(__name__)


def _get_client(graph: GraphService) -> GraphClient:
    """Get a Graph client, raising ToolError if not signed in."""
    try:
        return graph.get_client()
    except GraphAPIError as e:
        raise ToolError(str(e))


def create_users_tools(mcp: FastMCP, graph: GraphService) -> None:
    """Add user directory tools to the MCP server."""

    @mcp.tool(tags={"users"})
    def get_current_user() -> dict:
        """
        Get the signed-in user's profile.

        Returns display name, email, job title and office location.
        """
        try:
            return _get_client(graph).get_me().model_dump()
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to get current user: {str(e)}")

    @mcp.tool(tags={"users"})
    def search_users(
        query: str = Field(
            ...,
            description="Name or email to search for (partial matches allowed)",
        ),
        limit: int = Field(
            default=10,
            description="Maximum number of users to return (default: 10)",
        ),
    ) -> dict:
        """
        Search the organization directory for users by name or email.
        """
        try:
            users = _get_client(graph).search_users(query, limit=limit)

            return {
                "count": len(users),
                "users": [user.model_dump() for user in users],
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to search users: {str(e)}")

    @mcp.tool(tags={"users"})
    def get_user(
        user_id: str = Field(
            ...,
            description="User object ID or user principal name (email)",
        ),
    ) -> dict:
        """
        Get a user's profile by ID or email address.
        """
        try:
            return _get_client(graph).get_user(user_id).model_dump()
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to get user: {str(e)}")
