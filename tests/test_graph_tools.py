"""
Test the Graph-backed tools (users, teams, chats, search) and the
teams://teams resource through the MCP protocol.
"""

import json

import httpx
import pytest
from fastmcp.exceptions import ToolError

from teams_mcp.graph_service import GraphService
from teams_mcp.server import create_server
from tests.helpers import graph_transport, read_resource, tool_json


def ok(payload):
    return lambda request: httpx.Response(200, json=payload)


ROUTES = {
    "GET /me": ok({"id": "u1", "displayName": "Adele Vance", "userPrincipalName": "AdeleV@contoso.com"}),
    "GET /users/u2": ok({"id": "u2", "displayName": "Alex Wilber"}),
    "GET /users": ok({"value": [{"id": "u2", "displayName": "Alex Wilber"}]}),
    "GET /me/joinedTeams": ok({"value": [{"id": "t1", "displayName": "Sales"}]}),
    "GET /teams/t1/channels": ok({"value": [{"id": "c1", "displayName": "General"}]}),
    "GET /teams/t1/members": ok(
        {"value": [{"id": "m1", "userId": "u1", "displayName": "Adele Vance", "roles": ["owner"]}]}
    ),
    "GET /teams/t1/channels/c1/messages": ok(
        {
            "value": [
                {
                    "id": "1",
                    "createdDateTime": "2025-02-01T09:30:00Z",
                    "body": {"contentType": "text", "content": "hello"},
                }
            ]
        }
    ),
    "POST /teams/t1/channels/c1/messages": ok({"id": "new-msg", "webUrl": "https://teams.test/m"}),
    "GET /me/chats": ok({"value": [{"id": "chat1", "chatType": "oneOnOne"}]}),
    "GET /chats/chat1/messages": ok({"value": []}),
    "POST /chats/chat1/messages": ok({"id": "chat-msg"}),
    "POST /search/query": ok({"value": [{"hitsContainers": [{"hits": []}]}]}),
}


@pytest.fixture
def seen():
    return []


@pytest.fixture
def server(store, seen):
    return create_server(GraphService(store, transport=graph_transport(ROUTES, seen)))


@pytest.mark.parametrize(
    "tool, arguments",
    [
        ("get_current_user", {}),
        ("search_users", {"query": "alex"}),
        ("list_teams", {}),
        ("list_chats", {}),
        ("search_messages", {"query": "budget"}),
    ],
)
def test_tools_require_authentication(server, seen, tool, arguments):
    """Without a stored credential the tool fails before calling Graph."""
    with pytest.raises(ToolError, match="Not authenticated"):
        tool_json(server, tool, arguments)

    assert seen == []


def test_user_tools(server, saved_record):
    assert tool_json(server, "get_current_user")["display_name"] == "Adele Vance"
    assert tool_json(server, "get_user", {"user_id": "u2"})["display_name"] == "Alex Wilber"

    result = tool_json(server, "search_users", {"query": "alex", "limit": 5})
    assert result["count"] == 1
    assert result["users"][0]["id"] == "u2"


def test_team_tools(server, saved_record):
    teams = tool_json(server, "list_teams")
    assert teams["teams"][0]["display_name"] == "Sales"

    channels = tool_json(server, "list_channels", {"team_id": "t1"})
    assert channels["channels"][0]["id"] == "c1"

    members = tool_json(server, "list_team_members", {"team_id": "t1"})
    assert members["members"][0]["roles"] == ["owner"]

    messages = tool_json(server, "get_channel_messages", {"team_id": "t1", "channel_id": "c1"})
    assert messages["messages"][0]["content"] == "hello"


def test_send_channel_message(server, seen, saved_record):
    result = tool_json(
        server,
        "send_channel_message",
        {"team_id": "t1", "channel_id": "c1", "message": "Deploy done", "importance": "high"},
    )

    assert result == {"success": True, "message_id": "new-msg", "web_url": "https://teams.test/m"}
    body = json.loads(seen[-1].content)
    assert body["body"]["content"] == "Deploy done"
    assert body["importance"] == "high"


def test_chat_tools(server, saved_record):
    assert tool_json(server, "list_chats")["chats"][0]["chat_type"] == "oneOnOne"
    assert tool_json(server, "get_chat_messages", {"chat_id": "chat1"})["count"] == 0

    sent = tool_json(server, "send_chat_message", {"chat_id": "chat1", "message": "hi"})
    assert sent["message_id"] == "chat-msg"


def test_search_tool(server, saved_record):
    result = tool_json(server, "search_messages", {"query": "budget"})

    assert result == {"query": "budget", "count": 0, "results": []}


def test_graph_error_becomes_tool_error(server, saved_record):
    with pytest.raises(ToolError, match="NotFound"):
        tool_json(server, "list_channels", {"team_id": "missing"})


def test_teams_resource(server, saved_record):
    text = read_resource(server, "teams://teams")

    assert "- Sales (id: t1)" in text
    assert "#General (id: c1)" in text


def test_teams_resource_unauthenticated(server):
    assert "not connected" in read_resource(server, "teams://teams")
