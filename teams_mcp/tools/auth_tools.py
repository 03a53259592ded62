"""
Authentication tools for the Teams MCP server.

Provides tools for users to sign in to Microsoft Graph with a device code,
check their status, and sign out.
"""

import logging
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict, Any

import httpx
from fastmcp import FastMCP
from pydantic import Field

from teams_mcp.auth import (
    ActivationInstructions,
    DeviceFlowAuth,
    DeviceFlowError,
    LocalAuthState,
    check_local_auth,
)
from teams_mcp.graph_service import GraphService

logger = logging.getLogger(__name__)

NOT_AUTHENTICATED = "❌ Not authenticated. Use the 'authenticate' tool to authenticate."
NO_AUTHENTICATION_FOUND = (
    "❌ No authentication found. Use the 'authenticate' tool to authenticate."
)
INVALID_AUTHENTICATION = "❌ Invalid authentication data found"
READY = "🎯 Ready to use with MCP server!"
LOGGED_OUT = "✅ Successfully logged out\n🔄 Use the 'authenticate' tool to re-authenticate"
NOTHING_TO_CLEAR = "ℹ️ No authentication to clear"


def format_activation(instructions: ActivationInstructions) -> str:
    code = instructions.user_code
    url = instructions.verification_uri
    return (
        "🔐 Microsoft Device Code Authentication\n"
        "\n"
        f"📋 Code: {code}\n"
        f"🌐 Authentication URL: {url}\n"
        "\n"
        "Please follow these steps:\n"
        f"1. Open {url} in your browser\n"
        f"2. Enter the code '{code}'\n"
        "3. Sign in with your Microsoft account\n"
        "4. Wait for authentication to complete...\n"
        "\n"
        f"⏳ Authentication in progress... (code expires in {instructions.expires_in // 60} minutes)"
    )


def create_auth_tools(
    mcp: FastMCP, graph: GraphService, authenticator: DeviceFlowAuth
) -> None:
    """Register authentication tools with the MCP server."""

    @mcp.tool(tags={"auth"})
    def auth_status() -> str:
        """
        Check the authentication status of the Microsoft Graph connection.

        Returns whether the user is authenticated and shows their basic
        profile information.
        """
        status = graph.get_auth_status()
        if not status.is_authenticated:
            return NOT_AUTHENTICATED

        name = status.display_name or "Unknown User"
        email = status.user_principal_name or "No email available"
        return f"✅ Authenticated as {name} ({email})"

    @mcp.tool(tags={"auth"})
    def authenticate() -> str:
        """
        Authenticate with Microsoft Graph using device code flow.

        Returns a code and URL right away. Sign-in finishes in the background
        once the code has been entered in the browser; use check_auth or
        wait_for_authentication afterwards to confirm.
        """
        try:
            session = authenticator.start()
        except (DeviceFlowError, httpx.HTTPError) as e:
            logger.error(f"Failed to start authentication: {e}")
            return f"❌ Authentication failed: {e}"

        return format_activation(session.instructions)

    @mcp.tool(tags={"auth"})
    def check_auth() -> str:
        """
        Check the detailed authentication status including token expiration.

        Reads only the locally stored credential; no request is made to
        Microsoft Graph.
        """
        check = check_local_auth(graph.store)

        if check.state == LocalAuthState.MISSING:
            return NO_AUTHENTICATION_FOUND
        if check.state == LocalAuthState.INVALID:
            return INVALID_AUTHENTICATION

        record = check.record
        message = (
            "✅ Authentication found\n"
            f"📅 Authenticated on: {record.timestamp.isoformat()}"
        )

        if check.state == LocalAuthState.EXPIRED:
            return (
                message
                + "\n⚠️ Token may have expired - please re-authenticate using the 'authenticate' tool"
            )

        if record.expires_at is not None:
            expires = record.expires_at.astimezone().strftime("%Y-%m-%d %H:%M:%S %Z")
            message += f"\n⏰ Token expires: {expires}"
        return message + f"\n{READY}"

    @mcp.tool(tags={"auth"})
    def logout() -> str:
        """
        Clear the stored authentication credentials.

        You will need to re-authenticate to use Microsoft Graph tools.
        """
        try:
            removed = graph.store.clear()
        except OSError as e:
            logger.error(f"Failed to clear credentials: {e}")
            return f"❌ Failed to log out: {e}"

        return LOGGED_OUT if removed else NOTHING_TO_CLEAR

    @mcp.tool(tags={"auth"})
    def wait_for_authentication(
        timeout_seconds: int = Field(
            default=60,
            description="How long to wait for the pending sign-in to finish (default: 60)",
        ),
    ) -> Dict[str, Any]:
        """
        Wait for the most recent 'authenticate' sign-in to finish.

        Call this after entering the code in the browser to confirm the
        token was stored.
        """
        session = authenticator.latest_session
        if session is None:
            return {
                "status": "no_pending_authentication",
                "message": "No sign-in has been started.",
                "hint": "Use the 'authenticate' tool first.",
            }

        try:
            record = session.future.result(timeout=timeout_seconds)
        except FutureTimeoutError:
            return {
                "status": "pending",
                "message": "Still waiting for sign-in to complete.",
                "code": session.instructions.user_code,
                "url": session.instructions.verification_uri,
            }
        except Exception as e:
            return {
                "status": "error",
                "message": f"Authentication error: {e}",
                "hint": "Try running 'authenticate' again.",
            }

        if record is None:
            return {
                "status": "failed",
                "message": "Sign-in was declined or the code expired.",
                "hint": "Try running 'authenticate' again.",
            }

        return {
            "status": "success",
            "message": "Successfully authenticated with Microsoft Graph!",
            "expires_at": record.expires_at.isoformat() if record.expires_at else None,
        }
