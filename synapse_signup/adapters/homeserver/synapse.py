"""
Synapse admin registration adapter - Implements Homeserver protocol.

Speaks Synapse's shared-secret registration API:

1. ``GET  {server}/_synapse/admin/v1/register`` returns a single-use nonce.
2. ``POST {server}/_synapse/admin/v1/register`` with the nonce, the
   credentials and an HMAC-SHA1 over them keyed by the shared secret.

Wire contract (fixed by Synapse):
---------------------------------
The MAC message is ``nonce \\0 username \\0 password \\0 "notadmin"``,
hex encoded in lower case. Field order, the NUL separators and the
algorithm must not change or Synapse answers "HMAC incorrect".

Every request carries the client's timeout. Nothing is kept between
calls: each registration fetches its own nonce and uses it at most once.
"""

import hashlib
import hmac
import logging
import time
from dataclasses import dataclass

import httpx

from synapse_signup.domain.exceptions import (
    ProtocolError,
    UpstreamAuthError,
    UpstreamConflict,
    UpstreamUnavailable,
)

logger = logging.getLogger(__name__)

REGISTER_PATH = "/_synapse/admin/v1/register"

# Synapse error codes
USER_IN_USE = "M_USER_IN_USE"
FORBIDDEN = "M_FORBIDDEN"


@dataclass(frozen=True)
class HomeserverNonce:
    """Single-use nonce as issued by the homeserver."""

    value: str
    issued_at: float


def compute_registration_mac(
    nonce: str, username: str, password: str, shared_secret: str, admin: bool = False
) -> str:
    """
    Compute the registration MAC expected by Synapse.

    Args:
        nonce: Nonce returned by the GET call
        username: Localpart being registered
        password: Plaintext password
        shared_secret: registration_shared_secret of the homeserver
        admin: Whether the account is created as server admin

    Returns:
        Lower-case hex HMAC-SHA1 digest
    """
    mac = hmac.new(shared_secret.encode("utf-8"), digestmod=hashlib.sha1)
    mac.update(nonce.encode("utf-8"))
    mac.update(b"\x00")
    mac.update(username.encode("utf-8"))
    mac.update(b"\x00")
    mac.update(password.encode("utf-8"))
    mac.update(b"\x00")
    mac.update(b"admin" if admin else b"notadmin")
    return mac.hexdigest()


class SynapseAdminClient:
    """
    Implements Homeserver protocol via httpx.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The httpx.AsyncClient is owned by the caller (the app lifespan) and
    shared across requests; this class holds no per-request state.
    """

    def __init__(self, client: httpx.AsyncClient, server_url: str, shared_secret: str) -> None:
        """
        Initialize adapter.

        Args:
            client: Shared async HTTP client, configured with a timeout
            server_url: Homeserver base URL without trailing slash
            shared_secret: registration_shared_secret of the homeserver
        """
        self._client = client
        self._url = server_url.rstrip("/") + REGISTER_PATH
        self._shared_secret = shared_secret

    async def register(self, username: str, password: str) -> str:
        nonce = await self.fetch_nonce()
        logger.debug("Fetched registration nonce, registering %s", username)
        mac = compute_registration_mac(nonce.value, username, password, self._shared_secret)
        body = {
            "nonce": nonce.value,
            "username": username,
            "password": password,
            "mac": mac,
            "admin": False,
        }

        try:
            response = await self._client.post(self._url, json=body)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"register request timed out: {e!r}") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"register request failed: {e!r}") from e

        logger.debug("Register call for %s returned %d", username, response.status_code)
        return self._parse_register_response(response)

    async def fetch_nonce(self) -> HomeserverNonce:
        """
        Fetch a fresh registration nonce.

        Raises:
            UpstreamUnavailable: Network failure or timeout
            ProtocolError: Non-200 status or body without a nonce
        """
        try:
            response = await self._client.get(self._url)
        except httpx.TimeoutException as e:
            raise UpstreamUnavailable(f"nonce request timed out: {e!r}") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"nonce request failed: {e!r}") from e

        if response.status_code != httpx.codes.OK:
            raise ProtocolError(
                f"nonce request returned {response.status_code}: {response.text[:200]}"
            )

        payload = _json_object(response)
        nonce = payload.get("nonce") if payload is not None else None
        if not isinstance(nonce, str) or not nonce:
            raise ProtocolError("nonce response has no nonce")
        return HomeserverNonce(value=nonce, issued_at=time.time())

    def _parse_register_response(self, response: httpx.Response) -> str:
        status = response.status_code
        payload = _json_object(response)

        if status == httpx.codes.OK:
            user_id = payload.get("user_id") if payload is not None else None
            if not isinstance(user_id, str) or not user_id:
                raise ProtocolError("register response has no user_id")
            return user_id

        errcode = payload.get("errcode") if payload is not None else None
        error = payload.get("error") if payload is not None else None
        detail = f"register returned {status} {errcode}: {error}"

        if status == httpx.codes.CONFLICT or (
            status == httpx.codes.BAD_REQUEST and errcode == USER_IN_USE
        ):
            raise UpstreamConflict(detail)
        if status == httpx.codes.FORBIDDEN or _is_hmac_error(status, errcode, error):
            raise UpstreamAuthError(detail)

        if payload is None:
            detail = f"{detail} body={response.text[:200]!r}"
        raise ProtocolError(detail)


def _is_hmac_error(status: int, errcode: object, error: object) -> bool:
    if status != httpx.codes.BAD_REQUEST:
        return False
    if errcode == FORBIDDEN:
        return True
    return isinstance(error, str) and "hmac" in error.lower()


def _json_object(response: httpx.Response) -> dict | None:
    try:
        payload = response.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None
