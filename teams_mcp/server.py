"""
Teams MCP Server

Microsoft Graph tools for assistants - sign in with a device code, then
browse teams, read and send chat messages, and search.
"""

import os
import sys
import logging
from typing import Optional

from fastmcp import FastMCP

from teams_mcp.config import Config
from teams_mcp.auth import CredentialStore, DeviceFlowAuth
from teams_mcp.graph_service import GraphService
from teams_mcp.resources import create_teams_resources
from teams_mcp.tools import (
    create_auth_tools,
    create_chat_tools,
    create_search_tools,
    create_teams_tools,
    create_users_tools,
)

logger = logging.getLogger(__name__)


def create_server(
    graph: Optional[GraphService] = None,
    authenticator: Optional[DeviceFlowAuth] = None,
) -> FastMCP:
    """
    Create and configure the MCP server.

    Args:
        graph: Graph service shared by every tool (defaults to one backed by ~/.msgraph-mcp-auth.json)
        authenticator: Device-code authenticator (defaults to one writing graph's credential store)
    """
    graph = graph or GraphService(CredentialStore())
    authenticator = authenticator or DeviceFlowAuth(graph.store)

    mcp = FastMCP(Config.SERVER_NAME)

    create_auth_tools(mcp, graph, authenticator)
    create_users_tools(mcp, graph)
    create_teams_tools(mcp, graph)
    create_chat_tools(mcp, graph)
    create_search_tools(mcp, graph)
    create_teams_resources(mcp, graph)

    return mcp


def configure_logging() -> None:
    """Send logs to stderr; stdout carries the stdio protocol."""
    logging.basicConfig(
        level=Config.LOG_LEVEL.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def main():
    """Entry point for the CLI."""
    configure_logging()

    args = sys.argv[1:]
    if args:
        logger.error(f"Unknown command: {args[0]}")
        logger.error("teams-mcp takes no arguments; configure it through environment variables")
        sys.exit(1)

    transport = os.getenv("MCP_TRANSPORT", "stdio")

    try:
        mcp = create_server()
        logger.info(f"Microsoft Graph MCP Server starting (version {Config.SERVER_VERSION})")

        if transport == "stdio":
            mcp.run(transport="stdio")
        else:
            host = os.getenv("MCP_HOST", "127.0.0.1")
            port = int(os.getenv("MCP_PORT", "8001"))
            logger.info(f"Starting server: http://{host}:{port}/mcp (transport: {transport})")
            mcp.run(transport=transport, host=host, port=port)
    except KeyboardInterrupt:
        pass
    except Exception:
        logger.exception("Failed to start")
        sys.exit(1)


if __name__ == "__main__":
    main()
