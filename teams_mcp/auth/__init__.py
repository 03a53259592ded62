"""
Teams MCP Authentication Module

Handles the Microsoft Graph device-code flow and stores the resulting
access token locally for the other tools.
"""

from teams_mcp.auth.credentials import (
    TOKEN_PATH,
    CredentialRecord,
    CredentialStore,
)
from teams_mcp.auth.device_flow import (
    GRAPH_SCOPES,
    ActivationInstructions,
    DeviceFlowAuth,
    DeviceFlowError,
    DeviceFlowSession,
)
from teams_mcp.auth.status import (
    AuthStatus,
    LocalAuthCheck,
    LocalAuthState,
    check_local_auth,
)

__all__ = [
    "TOKEN_PATH",
    "CredentialRecord",
    "CredentialStore",
    "GRAPH_SCOPES",
    "ActivationInstructions",
    "DeviceFlowAuth",
    "DeviceFlowError",
    "DeviceFlowSession",
    "AuthStatus",
    "LocalAuthCheck",
    "LocalAuthState",
    "check_local_auth",
]
