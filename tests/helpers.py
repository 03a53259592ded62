"""
Shared test helpers for the Teams MCP tests.

Drives tools through the in-memory FastMCP client and fakes the Microsoft
identity platform and Graph with httpx.MockTransport.
"""

import json
import asyncio
import threading
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
from fastmcp import Client


def call_tool(mcp, name, arguments=None):
    """Call an MCP tool over the in-memory transport and return the result."""

    async def _call():
        async with Client(mcp) as client:
            return await client.call_tool(name, arguments or {})

    return asyncio.run(_call())


def tool_text(mcp, name, arguments=None) -> str:
    """Call a tool and return its first text block."""
    return call_tool(mcp, name, arguments).content[0].text


def tool_json(mcp, name, arguments=None) -> dict:
    """Call a tool that returns a dict and decode it."""
    return json.loads(tool_text(mcp, name, arguments))


def read_resource(mcp, uri) -> str:
    async def _read():
        async with Client(mcp) as client:
            return await client.read_resource(uri)

    return asyncio.run(_read())[0].text


def form(request: httpx.Request) -> Dict[str, str]:
    """Decode a form-encoded request body."""
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class FakeIdentityProvider:
    """
    Stand-in for login.microsoftonline.com.

    token_responses are served in order for successive token polls; the last
    one repeats. If gate is set, each token poll blocks until it is released.
    """

    LOGIN_URL = "https://login.test"

    def __init__(
        self,
        token_responses: Optional[List[httpx.Response]] = None,
        expires_in: int = 900,
        interval: int = 0,
        device_code_response: Optional[httpx.Response] = None,
        gate: Optional[threading.Event] = None,
    ):
        self.token_responses = token_responses or [pending()]
        self.expires_in = expires_in
        self.interval = interval
        self.device_code_response = device_code_response
        self.gate = gate
        self.requests: List[httpx.Request] = []
        self.token_polls = 0
        self.transport = httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path.endswith("/devicecode"):
            if self.device_code_response is not None:
                return _copy(self.device_code_response)
            return httpx.Response(
                200,
                json={
                    "device_code": "DEVICE-CODE-123",
                    "user_code": "ABCD-EFGH",
                    "verification_uri": "https://microsoft.com/devicelogin",
                    "expires_in": self.expires_in,
                    "interval": self.interval,
                    "message": "To sign in, use a web browser to open the page "
                    "https://microsoft.com/devicelogin and enter the code ABCD-EFGH.",
                },
            )

        if request.url.path.endswith("/token"):
            if self.gate is not None:
                self.gate.wait(timeout=10)
            index = min(self.token_polls, len(self.token_responses) - 1)
            self.token_polls += 1
            return _copy(self.token_responses[index])

        return httpx.Response(404)


def _copy(response: httpx.Response) -> httpx.Response:
    # Responses are single-use once a client has read them
    return httpx.Response(
        response.status_code, content=response.content, headers=response.headers
    )


def pending() -> httpx.Response:
    return httpx.Response(
        400,
        json={
            "error": "authorization_pending",
            "error_description": "AADSTS70016: OAuth 2.0 device flow error.",
        },
    )


def token_error(error: str) -> httpx.Response:
    return httpx.Response(400, json={"error": error, "error_description": error})


def granted(token: str = "graph-access-token", expires_in: int = 3599) -> httpx.Response:
    return httpx.Response(
        200,
        json={
            "token_type": "Bearer",
            "scope": "User.Read Chat.ReadWrite",
            "expires_in": expires_in,
            "access_token": token,
        },
    )


def graph_transport(
    routes: Dict[str, Callable[[httpx.Request], httpx.Response]],
    seen: Optional[List[httpx.Request]] = None,
) -> httpx.MockTransport:
    """
    Fake Graph keyed by "METHOD /path" (path relative to /v1.0).
    """

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        path = request.url.path.split("/v1.0", 1)[-1]
        route = routes.get(f"{request.method} {path}")
        if route is None:
            return httpx.Response(
                404,
                json={"error": {"code": "NotFound", "message": f"No route {path}"}},
            )
        return route(request)

    return httpx.MockTransport(handler)
