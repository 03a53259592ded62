"""
Chat Tools - 1:1 and group chat messaging.

These tools require Microsoft Graph authentication.
Sign in using the authenticate tool first.
"""

import logging

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from pydantic import Field

from teams_mcp.api_clients import GraphAPIError
from teams_mcp.graph_service import GraphService
from teams_mcp.tools.users_tools import _get_client

logger = logging.getLogger(__name__)


def create_chat_tools(mcp: FastMCP, graph: GraphService) -> None:
    """Add chat tools to the MCP server."""

    @mcp.tool(tags={"chats"})
    def list_chats(
        limit: int = Field(
            default=20,
            description="Maximum number of chats to return (default: 20, max: 50)",
        ),
    ) -> dict:
        """
        List the signed-in user's recent chats with their members.

        Use a chat ID with get_chat_messages or send_chat_message.
        """
        try:
            chats = _get_client(graph).list_chats(limit=limit)

            return {
                "count": len(chats),
                "chats": [chat.model_dump(mode="json") for chat in chats],
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to list chats: {str(e)}")

    @mcp.tool(tags={"chats", "messaging"})
    def get_chat_messages(
        chat_id: str = Field(..., description="Chat ID (from list_chats)"),
        limit: int = Field(
            default=20,
            description="Maximum number of messages to return (default: 20, max: 50)",
        ),
    ) -> dict:
        """
        Get recent messages from a chat.
        """
        try:
            messages = _get_client(graph).list_chat_messages(chat_id, limit=limit)

            return {
                "chat_id": chat_id,
                "count": len(messages),
                "messages": [m.model_dump(mode="json") for m in messages],
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to get chat messages: {str(e)}")

    @mcp.tool(tags={"chats", "messaging"})
    def send_chat_message(
        chat_id: str = Field(..., description="Chat ID (from list_chats)"),
        message: str = Field(..., description="Message text to send"),
    ) -> dict:
        """
        Send a message to a chat.
        """
        try:
            sent = _get_client(graph).send_chat_message(chat_id, message)

            return {
                "success": True,
                "chat_id": chat_id,
                "message_id": sent.id,
            }
        except ToolError:
            raise
        except GraphAPIError as e:
            raise ToolError(str(e))
        except Exception as e:
            raise ToolError(f"Failed to send chat message: {str(e)}")
