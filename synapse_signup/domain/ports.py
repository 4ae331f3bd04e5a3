"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the interfaces (ports) that the domain requires
from infrastructure, plus the value types that cross them.
Adapters implement these protocols.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class RegistrationState(str, Enum):
    """
    Classified result of one registration submission.

    Closed vocabulary: every submission ends in exactly one of these.
    The string values are part of the HTTP contract rendered by the form.
    """

    REGISTERED = "REGISTERED"
    WRONG_SHARED_SECRET = "WRONG_SHARED_SECRET"
    BLOCKED = "BLOCKED"
    INVALID_TOKEN = "INVALID_TOKEN"
    INVALID_USER_OR_PASS = "INVALID_USER_OR_PASS"
    USER_EXISTS = "USER_EXISTS"
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass(frozen=True)
class RegistrationOutcome:
    """Immutable outcome; username is only carried when REGISTERED."""

    state: RegistrationState
    username: str | None = None

    @classmethod
    def registered(cls, username: str) -> "RegistrationOutcome":
        return cls(RegistrationState.REGISTERED, username)

    @classmethod
    def failed(cls, state: RegistrationState) -> "RegistrationOutcome":
        if state is RegistrationState.REGISTERED:
            raise ValueError("REGISTERED outcome requires a username")
        return cls(state)


@dataclass(frozen=True)
class RegistrationRequest:
    """Raw form submission, exactly as received."""

    username: str
    password: str
    password_confirmation: str
    token: str

    def __repr__(self) -> str:
        return f"RegistrationRequest(username={self.username!r})"


@dataclass(frozen=True)
class Actor:
    """Rate-limiting identity: client address plus optional fingerprint."""

    address: str
    fingerprint: str | None = None

    def __str__(self) -> str:
        if self.fingerprint:
            return f"{self.address}#{self.fingerprint}"
        return self.address


class AbuseDecision(Enum):
    """Gate decision returned by the abuse tracker."""

    ALLOWED = "allowed"
    BLOCKED = "blocked"


class AbuseTracker(Protocol):
    """Port interface for per-actor failure counting and temporary blocks."""

    def check(self, actor: Actor) -> AbuseDecision:
        """
        Return BLOCKED while the actor's block is in force.

        Must not touch any other component; called before any network I/O.
        """
        ...

    def record_failure(self, actor: Actor) -> AbuseDecision:
        """
        Atomically count one failure against the actor.

        Returns BLOCKED if this failure reached the threshold.
        """
        ...

    def record_success(self, actor: Actor) -> None:
        """Forget every failure and block recorded for the actor."""
        ...


class Homeserver(Protocol):
    """Port interface for the homeserver's admin registration API."""

    async def register(self, username: str, password: str) -> str:
        """
        Create a non-admin account.

        Args:
            username: Validated, lower-case localpart
            password: Validated password

        Returns:
            The fully qualified Matrix user id reported by the homeserver

        Raises:
            UpstreamAuthError: Shared secret rejected
            UpstreamConflict: User id already taken
            UpstreamUnavailable: Network failure or timeout
            ProtocolError: Unexpected status or body
        """
        ...
