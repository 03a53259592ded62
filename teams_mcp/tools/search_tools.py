"""
Search Tools - Find messages across chats and channels.

Uses the Microsoft Search API, which supports KQL syntax such as
from:jane@contoso.com or sent>=2024-01-01.
"""

import logging

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from teams_mcp.api_clients import GraphAPIError
from teams_mcp.graph_service import GraphService
from teams_mcp.tools.users_tools import _get_client

logger = logging.getLogger(__name__)


def create_search_tools(mcp: FastMCP, graph: GraphService) -> None:
    """Add search tools to the MCP server."""

    @mcp.tool(tags={"search", "messaging"})
    def search_messages(
        query: str = Field(
            ...,
            description="Search text. KQL filters like from:<email> are supported.",
        ),
        limit: int = Field(
            default=25,
            description="Maximum number of results to return (default: 25)",
        ),
    ) -> dict:
        """
        Search Teams chat and channel messages the signed-in user can see.
        """
        try:
            hits = _get_client(graph).search_messages(query, limit=limit)

            return {
                "query": query,
                "count": len(hits),
                "results": [hit.model_dump(mode="json") for hit in hits],
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to search messages: {str(e)}")
