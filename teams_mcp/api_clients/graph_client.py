"""
Microsoft Graph API client for MCP server.

Provides Graph v1.0 operations using httpx.
Focuses on users, teams, channels, chats and message search.
"""

import re
import html
import logging
from typing import List, Optional, Dict, Any
from datetime import datetime

import httpx
from pydantic import BaseModel

from teams_mcp.config import Config

logger = logging.getLogger(__name__)


# ============================================================================
# Pydantic models for Graph data
# ============================================================================


class GraphUser(BaseModel):
    """Represents a directory user."""

    id: str
    display_name: Optional[str] = None
    user_principal_name: Optional[str] = None
    mail: Optional[str] = None
    job_title: Optional[str] = None
    department: Optional[str] = None
    office_location: Optional[str] = None


class Team(BaseModel):
    """Represents a team the user has joined."""

    id: str
    display_name: str
    description: str = ""
    is_archived: bool = False


class Channel(BaseModel):
    """Represents a team channel."""

    id: str
    display_name: str
    description: str = ""
    membership_type: Optional[str] = None  # standard, private, shared
    web_url: Optional[str] = None


class TeamMember(BaseModel):
    """Represents a member of a team."""

    id: str
    user_id: Optional[str] = None
    display_name: Optional[str] = None
    email: Optional[str] = None
    roles: List[str] = []


class Chat(BaseModel):
    """Represents a 1:1, group or meeting chat."""

    id: str
    topic: Optional[str] = None
    chat_type: str  # oneOnOne, group, meeting
    last_updated: Optional[datetime] = None
    members: List[str] = []
    web_url: Optional[str] = None


class ChatMessage(BaseModel):
    """Represents a channel or chat message."""

    id: str
    created: Optional[datetime] = None
    sender: Optional[str] = None
    content: str = ""
    message_type: str = "message"
    importance: str = "normal"
    reply_to_id: Optional[str] = None
    web_url: Optional[str] = None


class SearchHit(BaseModel):
    """Represents one message returned by Microsoft Search."""

    id: str
    summary: str = ""
    created: Optional[datetime] = None
    sender: Optional[str] = None
    chat_id: Optional[str] = None
    team_id: Optional[str] = None
    channel_id: Optional[str] = None
    web_url: Optional[str] = None


# ============================================================================
# Graph Client
# ============================================================================


_TAG_RE = re.compile(r"<[^>]+>")


def _plain_text(body: Optional[Dict[str, Any]]) -> str:
    """Flatten a Graph itemBody to plain text."""
    if not body:
        return ""
    content = body.get("content") or ""
    if body.get("contentType") == "html":
        content = _TAG_RE.sub("", content.replace("<br>", "\n"))
        content = html.unescape(content)
    return content.strip()


def _sender_name(message: Dict[str, Any]) -> Optional[str]:
    sender = message.get("from") or {}
    for key in ("user", "application", "device"):
        identity = sender.get(key)
        if identity and identity.get("displayName"):
            return identity["displayName"]
    return None


class GraphClient:
    """
    Microsoft Graph API client using httpx.

    Provides simplified interface for Teams operations.
    Uses a delegated bearer token from device-code sign-in.
    """

    def __init__(
        self,
        token: str,
        base_url: Optional[str] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize Graph API client.

        Args:
            token: Delegated access token
            base_url: Graph endpoint (defaults to https://graph.microsoft.com/v1.0)
            transport: Optional httpx transport (used in tests)
        """
        self.base_url = (base_url or Config.GRAPH_API_URL).rstrip("/")
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }

    def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json: Optional[Dict] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Make a request to Graph and return the decoded body."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        with httpx.Client(
            timeout=Config.HTTP_TIMEOUT, transport=self._transport
        ) as client:
            response = client.request(
                method,
                url,
                params=params,
                json=json,
                headers={**self._headers, **(headers or {})},
            )

        if response.status_code >= 400:
            raise GraphAPIError.from_response(response)

        if not response.content:
            return {}
        return response.json()

    def _list(self, endpoint: str, params: Optional[Dict] = None, **kwargs) -> List[Dict]:
        return self._request("GET", endpoint, params=params, **kwargs).get("value", [])

    # ========================================================================
    # Users
    # ========================================================================

    @staticmethod
    def _to_user(data: Dict[str, Any]) -> GraphUser:
        return GraphUser(
            id=data["id"],
            display_name=data.get("displayName"),
            user_principal_name=data.get("userPrincipalName"),
            mail=data.get("mail"),
            job_title=data.get("jobTitle"),
            department=data.get("department"),
            office_location=data.get("officeLocation"),
        )

    def get_me(self) -> GraphUser:
        """Get the signed-in user's profile."""
        return self._to_user(self._request("GET", "me"))

    def get_user(self, user_id: str) -> GraphUser:
        """
        Get a user by object ID or user principal name.

        Args:
            user_id: Object ID or UPN (e.g. jane@contoso.com)
        """
        return self._to_user(self._request("GET", f"users/{user_id}"))

    def search_users(self, query: str, limit: int = 10) -> List[GraphUser]:
        """
        Search the directory by display name or email.

        Args:
            query: Text to match against displayName and mail
            limit: Maximum users to return

        Returns:
            List of matching users
        """
        term = query.replace('"', "")
        data = self._list(
            "users",
            params={
                "$search": f'"displayName:{term}" OR "mail:{term}"',
                "$top": limit,
            },
            # Required by Graph for $search on directory objects
            headers={"ConsistencyLevel": "eventual"},
        )
        return [self._to_user(u) for u in data]

    # ========================================================================
    # Teams & Channels
    # ========================================================================

    def list_teams(self) -> List[Team]:
        """List teams the signed-in user is a member of."""
        return [
            Team(
                id=t["id"],
                display_name=t.get("displayName") or "",
                description=t.get("description") or "",
                is_archived=t.get("isArchived") or False,
            )
            for t in self._list("me/joinedTeams")
        ]

    def list_channels(self, team_id: str) -> List[Channel]:
        """List channels in a team."""
        return [
            Channel(
                id=c["id"],
                display_name=c.get("displayName") or "",
                description=c.get("description") or "",
                membership_type=c.get("membershipType"),
                web_url=c.get("webUrl"),
            )
            for c in self._list(f"teams/{team_id}/channels")
        ]

    def list_team_members(self, team_id: str) -> List[TeamMember]:
        """List members of a team with their roles."""
        return [
            TeamMember(
                id=m["id"],
                user_id=m.get("userId"),
                display_name=m.get("displayName"),
                email=m.get("email"),
                roles=m.get("roles") or [],
            )
            for m in self._list(f"teams/{team_id}/members")
        ]

    # ========================================================================
    # Messages
    # ========================================================================

    @staticmethod
    def _to_message(data: Dict[str, Any]) -> ChatMessage:
        return ChatMessage(
            id=data["id"],
            created=data.get("createdDateTime"),
            sender=_sender_name(data),
            content=_plain_text(data.get("body")),
            message_type=data.get("messageType") or "message",
            importance=data.get("importance") or "normal",
            reply_to_id=data.get("replyToId"),
            web_url=data.get("webUrl"),
        )

    def list_channel_messages(
        self, team_id: str, channel_id: str, limit: int = 20
    ) -> List[ChatMessage]:
        """
        Get recent top-level messages in a channel.

        Args:
            team_id: Team ID
            channel_id: Channel ID
            limit: Maximum messages to return (Graph caps this at 50)
        """
        data = self._list(
            f"teams/{team_id}/channels/{channel_id}/messages",
            params={"$top": min(limit, 50)},
        )
        return [self._to_message(m) for m in data]

    def send_channel_message(
        self,
        team_id: str,
        channel_id: str,
        content: str,
        content_type: str = "text",
        importance: str = "normal",
    ) -> ChatMessage:
        """
        Post a new message to a channel.

        Args:
            team_id: Team ID
            channel_id: Channel ID
            content: Message body
            content_type: "text" or "html"
            importance: "normal", "high" or "urgent"
        """
        payload = {
            "body": {"contentType": content_type, "content": content},
            "importance": importance,
        }
        data = self._request(
            "POST", f"teams/{team_id}/channels/{channel_id}/messages", json=payload
        )
        return self._to_message(data)

    # ========================================================================
    # Chats
    # ========================================================================

    def list_chats(self, limit: int = 20) -> List[Chat]:
        """List the signed-in user's chats, most recently updated first."""
        data = self._list(
            "me/chats",
            params={"$expand": "members", "$top": min(limit, 50)},
        )
        chats = [
            Chat(
                id=c["id"],
                topic=c.get("topic"),
                chat_type=c.get("chatType") or "unknown",
                last_updated=c.get("lastUpdatedDateTime"),
                members=[
                    m["displayName"]
                    for m in c.get("members") or []
                    if m.get("displayName")
                ],
                web_url=c.get("webUrl"),
            )
            for c in data
        ]
        return sorted(
            chats,
            key=lambda c: c.last_updated.timestamp() if c.last_updated else 0,
            reverse=True,
        )

    def list_chat_messages(self, chat_id: str, limit: int = 20) -> List[ChatMessage]:
        """Get recent messages in a chat."""
        data = self._list(
            f"chats/{chat_id}/messages",
            params={"$top": min(limit, 50)},
        )
        return [self._to_message(m) for m in data]

    def send_chat_message(
        self, chat_id: str, content: str, content_type: str = "text"
    ) -> ChatMessage:
        """Send a message to a chat."""
        payload = {"body": {"contentType": content_type, "content": content}}
        data = self._request("POST", f"chats/{chat_id}/messages", json=payload)
        return self._to_message(data)

    # ========================================================================
    # Search
    # ========================================================================

    def search_messages(self, query: str, limit: int = 25) -> List[SearchHit]:
        """
        Search chat and channel messages with Microsoft Search.

        Args:
            query: KQL query string
            limit: Maximum hits to return
        """
        payload = {
            "requests": [
                {
                    "entityTypes": ["chatMessage"],
                    "query": {"queryString": query},
                    "from": 0,
                    "size": limit,
                }
            ]
        }
        data = self._request("POST", "search/query", json=payload)

        hits = []
        for result in data.get("value", []):
            for container in result.get("hitsContainers", []):
                for hit in container.get("hits") or []:
                    resource = hit.get("resource") or {}
                    channel = resource.get("channelIdentity") or {}
                    hits.append(
                        SearchHit(
                            id=resource.get("id") or hit.get("hitId", ""),
                            summary=_TAG_RE.sub("", hit.get("summary") or ""),
                            created=resource.get("createdDateTime"),
                            sender=(
                                (resource.get("from") or {})
                                .get("emailAddress", {})
                                .get("name")
                            ),
                            chat_id=resource.get("chatId"),
                            team_id=channel.get("teamId"),
                            channel_id=channel.get("channelId"),
                            web_url=resource.get("webLink"),
                        )
                    )
        return hits[:limit]


class GraphAPIError(Exception):
    """Exception raised for Microsoft Graph API errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @classmethod
    def from_response(cls, response: httpx.Response) -> "GraphAPIError":
        try:
            error = response.json().get("error")
        except (ValueError, AttributeError):
            error = None
        if not isinstance(error, dict):
            error = {}

        code = error.get("code") or f"HTTP {response.status_code}"
        message = f"Graph API error ({code}): {error.get('message') or response.reason_phrase}"
        if response.status_code == 401:
            message += ". The access token may have expired; run 'authenticate' again."
        return cls(message, status_code=response.status_code)


class GraphAuthError(GraphAPIError):
    """Raised when no usable credential is stored."""

    pass
