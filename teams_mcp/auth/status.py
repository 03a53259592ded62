"""
Authentication status checks.

Two independent views of the stored credential:
- AuthStatus: the stored flag plus a live Graph profile lookup (GraphService)
- LocalAuthCheck: the stored expiry only, no network
"""

from enum import Enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from teams_mcp.auth.credentials import CredentialRecord, CredentialStore


class AuthStatus(BaseModel):
    """Result of a live status check."""

    is_authenticated: bool
    display_name: Optional[str] = None
    user_principal_name: Optional[str] = None


class LocalAuthState(str, Enum):
    MISSING = "missing"
    INVALID = "invalid"
    VALID = "valid"
    EXPIRED = "expired"


class LocalAuthCheck(BaseModel):
    """Result of inspecting the credential file without calling Graph."""

    state: LocalAuthState
    record: Optional[CredentialRecord] = None


def check_local_auth(
    store: CredentialStore, now: Optional[datetime] = None
) -> LocalAuthCheck:
    """
    Classify the stored credential by its own data.

    Args:
        store: Credential store to read
        now: Reference time for the expiry comparison (defaults to current UTC time)
    """
    record = store.load()
    if record is None:
        return LocalAuthCheck(state=LocalAuthState.MISSING)

    if not record.authenticated or not record.client_id:
        return LocalAuthCheck(state=LocalAuthState.INVALID, record=record)

    if record.is_expired(now):
        return LocalAuthCheck(state=LocalAuthState.EXPIRED, record=record)

    return LocalAuthCheck(state=LocalAuthState.VALID, record=record)
