"""
Graph service shared by all tools.

One instance is built per server and passed to each tool group. It owns
the credential store and hands out Graph clients carrying the stored token.
"""

import logging
from typing import Optional

import httpx

from teams_mcp.config import Config
from teams_mcp.auth import AuthStatus, CredentialStore
from teams_mcp.api_clients import GraphAPIError, GraphAuthError, GraphClient

logger = logging.getLogger(__name__)


class GraphService:
    """Access point for Microsoft Graph using the locally stored credential."""

    def __init__(
        self,
        store: Optional[CredentialStore] = None,
        api_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Args:
            store: Credential store (defaults to ~/.msgraph-mcp-auth.json)
            api_url: Graph endpoint (defaults to Config.GRAPH_API_URL)
            transport: Optional httpx transport shared by every client (used in tests)
        """
        self.store = store or CredentialStore()
        self.api_url = api_url or Config.GRAPH_API_URL
        self._transport = transport

    def is_authenticated(self) -> bool:
        record = self.store.load()
        return record is not None and record.is_usable

    def get_client(self) -> GraphClient:
        """
        Build a Graph client from the stored token.

        Raises:
            GraphAuthError if there is no usable credential
        """
        record = self.store.load()
        if record is None or not record.is_usable:
            raise GraphAuthError(
                "Not authenticated. Use the 'authenticate' tool to sign in to Microsoft Graph."
            )
        return GraphClient(
            token=record.token, base_url=self.api_url, transport=self._transport
        )

    def get_auth_status(self) -> AuthStatus:
        """
        Report whether a usable credential is stored, with profile details
        when Graph accepts it.
        """
        if not self.is_authenticated():
            return AuthStatus(is_authenticated=False)

        try:
            me = self.get_client().get_me()
        except (GraphAPIError, httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning(f"Profile lookup failed during status check: {e}")
            return AuthStatus(is_authenticated=True)

        return AuthStatus(
            is_authenticated=True,
            display_name=me.display_name,
            user_principal_name=me.user_principal_name,
        )
