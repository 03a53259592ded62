"""
Credential storage for the Teams MCP server.

Stores the Microsoft Graph access token obtained through device-code sign-in
in ~/.msgraph-mcp-auth.json. A single record is kept; a missing, unreadable
or malformed file means "not authenticated".
"""

import os
import json
import logging
import tempfile
from pathlib import Path
from typing import Optional
from datetime import datetime, timedelta, timezone

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from teams_mcp.config import Config

logger = logging.getLogger(__name__)

# Local storage
TOKEN_PATH = Path.home() / ".msgraph-mcp-auth.json"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class CredentialRecord(BaseModel):
    """Outcome of a successful device-code sign-in, as persisted on disk."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    client_id: str = Field(default="", alias="clientId")
    authenticated: bool
    timestamp: datetime
    expires_at: Optional[datetime] = Field(default=None, alias="expiresAt")
    token: str

    @field_validator("timestamp", "expires_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @classmethod
    def issued_now(
        cls,
        token: str,
        expires_in: Optional[int] = None,
        client_id: str = Config.CLIENT_ID,
    ) -> "CredentialRecord":
        """Build a record for a token that was just granted."""
        now = utc_now()
        expires_at = None
        if expires_in:
            expires_at = now + timedelta(seconds=expires_in)
        return cls(
            client_id=client_id,
            authenticated=True,
            timestamp=now,
            expires_at=expires_at,
            token=token,
        )

    @property
    def is_usable(self) -> bool:
        return self.authenticated and bool(self.client_id) and bool(self.token)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """A record without an expiry never counts as expired."""
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utc_now())

    def to_json(self) -> str:
        return json.dumps(
            self.model_dump(mode="json", by_alias=True, exclude_none=True), indent=2
        )


class CredentialStore:
    """
    Reads and writes the single credential record.

    Usage:
        store = CredentialStore()

        # After device-code sign-in
        store.save(CredentialRecord.issued_now(token="eyJ0...", expires_in=3599))

        # Before calling Graph
        record = store.load()
        if record and record.is_usable:
            pass

        # On logout
        store.clear()
    """

    def __init__(self, path: Optional[Path] = None):
        """
        Initialize credential store.

        Args:
            path: Location of the credential file (defaults to ~/.msgraph-mcp-auth.json)
        """
        self.path = Path(path) if path else TOKEN_PATH

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> Optional[CredentialRecord]:
        """Load the stored record, or None if it is missing or unusable."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Failed to read credentials: {e}")
            return None

        try:
            record = CredentialRecord.model_validate_json(raw, strict=True)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed credentials file {self.path}: {e}")
            return None

        logger.debug(f"Loaded credentials issued at {record.timestamp.isoformat()}")
        return record

    def save(self, record: CredentialRecord) -> None:
        """Replace the stored record. The file is swapped in whole."""
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self.path.name}.", dir=str(self.path.parent)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(record.to_json())
            os.chmod(tmp_name, 0o600)  # Restrict permissions
            os.replace(tmp_name, self.path)
        except Exception as e:
            logger.error(f"Failed to save credentials: {e}")
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

        logger.info(f"Saved credentials to {self.path}")

    def clear(self) -> bool:
        """
        Delete the stored record.

        Returns:
            True if a file was removed, False if there was nothing to clear
        """
        try:
            self.path.unlink()
        except FileNotFoundError:
            return False

        logger.info("Cleared stored credentials")
        return True
