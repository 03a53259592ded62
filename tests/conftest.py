"""Shared fixtures for the Teams MCP tests."""

import json
from datetime import datetime, timedelta, timezone

import pytest

from teams_mcp.auth import CredentialRecord, CredentialStore
from teams_mcp.config import Config


@pytest.fixture
def store(tmp_path):
    """Credential store backed by a temporary file."""
    return CredentialStore(tmp_path / ".msgraph-mcp-auth.json")


@pytest.fixture
def write_credentials(store):
    """Write a raw credential file the way a previous sign-in would have."""

    def _write(expires_in_hours=1, **overrides):
        now = datetime.now(timezone.utc)
        data = {
            "clientId": Config.CLIENT_ID,
            "authenticated": True,
            "timestamp": now.isoformat(),
            "token": "eyJ0eXAiOiJKV1QiLCJhbGciOi.test-token",
        }
        if expires_in_hours is not None:
            data["expiresAt"] = (now + timedelta(hours=expires_in_hours)).isoformat()
        data.update(overrides)
        store.path.write_text(json.dumps(data, indent=2))
        return data

    return _write


@pytest.fixture
def saved_record(store):
    record = CredentialRecord.issued_now(token="graph-token", expires_in=3600)
    store.save(record)
    return record

