"""
OAuth Device Code Flow Authentication for Microsoft Graph.

Implements RFC 8628 device authorization flow against the Microsoft
identity platform:
1. Server requests a device code + user code for the Graph scopes
2. The user code and verification URL go back to the MCP client right away
3. User visits microsoft.com/devicelogin and enters the code
4. A background thread polls the token endpoint until complete
5. The access token is stored locally for the other tools
"""

import time
import logging
import threading
from concurrent.futures import Future
from dataclasses import dataclass, field
from typing import List, Optional

import httpx
from pydantic import BaseModel

from teams_mcp.config import Config
from teams_mcp.auth.credentials import CredentialRecord, CredentialStore

logger = logging.getLogger(__name__)

DEVICE_CODE_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:device_code"

GRAPH_SCOPES = [
    "User.Read",
    "User.ReadBasic.All",
    "Team.ReadBasic.All",
    "Channel.ReadBasic.All",
    "ChannelMessage.Read.All",
    "ChannelMessage.Send",
    "TeamMember.Read.All",
    "Chat.ReadBasic",
    "Chat.ReadWrite",
]

# Token endpoint errors that end the exchange for good
TERMINAL_ERRORS = {
    "authorization_declined",
    "access_denied",
    "expired_token",
    "bad_verification_code",
}


class DeviceFlowError(Exception):
    """Exception raised when the identity provider rejects a device-code request."""

    pass


class ActivationInstructions(BaseModel):
    """What the user needs to finish sign-in on another device."""

    user_code: str
    verification_uri: str
    expires_in: int
    message: Optional[str] = None


@dataclass
class DeviceCodeGrant:
    """A device code issued by the identity provider, not yet redeemed."""

    device_code: str
    instructions: ActivationInstructions
    interval: int = 5


@dataclass
class DeviceFlowSession:
    """
    A device-code exchange in progress.

    The instructions are available immediately; the future resolves once the
    background exchange ends, with the saved record on success or None when
    the user declined or the code expired.
    """

    instructions: ActivationInstructions
    future: "Future[Optional[CredentialRecord]]" = field(default_factory=Future)

    @property
    def done(self) -> bool:
        return self.future.done()


class DeviceFlowAuth:
    """
    Handles the Microsoft Graph device-code flow.

    Usage:
        auth = DeviceFlowAuth(store)

        session = auth.start()
        print(session.instructions.user_code, session.instructions.verification_uri)

        # Optional: block until the user finishes signing in
        record = session.future.result(timeout=300)
    """

    def __init__(
        self,
        store: CredentialStore,
        client_id: Optional[str] = None,
        tenant_id: Optional[str] = None,
        login_url: Optional[str] = None,
        scopes: Optional[List[str]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize device flow authentication.

        Args:
            store: Credential store the granted token is written to
            client_id: Application (client) ID (defaults to the public Graph client)
            tenant_id: Tenant ID or "common"
            login_url: Identity platform base URL
            scopes: Scopes to request (defaults to GRAPH_SCOPES)
            transport: Optional httpx transport (used in tests)
        """
        self.store = store
        self.client_id = client_id or Config.CLIENT_ID
        self.tenant_id = tenant_id or Config.TENANT_ID
        self.login_url = (login_url or Config.LOGIN_URL).rstrip("/")
        self.scopes = scopes or list(GRAPH_SCOPES)
        self._transport = transport
        self.latest_session: Optional[DeviceFlowSession] = None

    @property
    def _endpoint(self) -> str:
        return f"{self.login_url}/{self.tenant_id}/oauth2/v2.0"

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=Config.HTTP_TIMEOUT, transport=self._transport)

    def init_flow(self) -> DeviceCodeGrant:
        """
        Request a device code from the identity provider.

        Returns:
            DeviceCodeGrant with the activation instructions

        Raises:
            DeviceFlowError if the provider rejects the request
            httpx.HTTPError on network failure
        """
        with self._client() as client:
            response = client.post(
                f"{self._endpoint}/devicecode",
                data={"client_id": self.client_id, "scope": " ".join(self.scopes)},
            )

        data = _json_or_empty(response)
        if response.status_code != 200:
            raise DeviceFlowError(_describe_error(data, response.status_code))

        interval = data.get("interval")
        expires_in = data.get("expires_in")
        try:
            return DeviceCodeGrant(
                device_code=data["device_code"],
                interval=5 if interval is None else int(interval),
                instructions=ActivationInstructions(
                    user_code=data["user_code"],
                    verification_uri=data.get("verification_uri")
                    or data["verification_url"],
                    expires_in=900 if expires_in is None else int(expires_in),
                    message=data.get("message"),
                ),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DeviceFlowError(f"Unexpected device code response: {e}")

    def poll_for_completion(self, grant: DeviceCodeGrant) -> Optional[CredentialRecord]:
        """
        Poll the token endpoint until the user completes sign-in.

        Runs until the device code expires. A granted token is saved to the
        credential store before returning.

        Args:
            grant: Device code from init_flow

        Returns:
            CredentialRecord if successful, None if declined or expired
        """
        deadline = time.monotonic() + grant.instructions.expires_in
        interval = grant.interval

        with self._client() as client:
            while time.monotonic() < deadline:
                response = client.post(
                    f"{self._endpoint}/token",
                    data={
                        "grant_type": DEVICE_CODE_GRANT_TYPE,
                        "client_id": self.client_id,
                        "device_code": grant.device_code,
                    },
                )
                data = _json_or_empty(response)

                if response.status_code == 200 and data.get("access_token"):
                    record = CredentialRecord.issued_now(
                        token=data["access_token"],
                        expires_in=data.get("expires_in"),
                        client_id=self.client_id,
                    )
                    try:
                        self.store.save(record)
                    except OSError as e:
                        logger.error(f"Signed in but could not store the token: {e}")
                    return record

                error = data.get("error")
                if error == "authorization_pending":
                    pass
                elif error == "slow_down":
                    interval += 5
                elif error in TERMINAL_ERRORS:
                    logger.warning(f"Device code sign-in ended: {error}")
                    return None
                else:
                    logger.error(
                        f"Unexpected token endpoint response: "
                        f"{_describe_error(data, response.status_code)}"
                    )
                    return None

                time.sleep(interval)

        logger.warning("Device code expired before sign-in completed")
        return None

    def start(self) -> DeviceFlowSession:
        """
        Begin sign-in and return as soon as the user code is known.

        The rest of the exchange runs on a daemon thread; its outcome is only
        visible through the session's future and the credential store.

        Raises:
            DeviceFlowError / httpx.HTTPError if the device code request fails
        """
        grant = self.init_flow()
        session = DeviceFlowSession(instructions=grant.instructions)
        self.latest_session = session

        thread = threading.Thread(
            target=self._run_exchange,
            args=(grant, session.future),
            name="device-code-exchange",
            daemon=True,
        )
        thread.start()
        logger.info(
            f"Device code sign-in started; waiting for user at "
            f"{grant.instructions.verification_uri}"
        )
        return session

    def _run_exchange(
        self, grant: DeviceCodeGrant, future: "Future[Optional[CredentialRecord]]"
    ) -> None:
        if not future.set_running_or_notify_cancel():
            return
        try:
            record = self.poll_for_completion(grant)
        except Exception as e:
            logger.exception("Authentication error")
            future.set_exception(e)
            return

        if record:
            logger.info("Device code sign-in completed")
        future.set_result(record)


def _json_or_empty(response: httpx.Response) -> dict:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _describe_error(data: dict, status_code: int) -> str:
    error = data.get("error") or f"HTTP {status_code}"
    description = data.get("error_description")
    if description:
        # AADSTS descriptions carry trace and correlation IDs after the first line
        return f"{error}: {description.splitlines()[0]}"
    return error
