"""
Domain exceptions - Semantic error types for registration.

This module defines domain-specific exceptions that communicate
business rule violations without leaking infrastructure details.
Every exception maps onto exactly one RegistrationState; the broker
resolves them before anything reaches the HTTP layer.
"""

from .ports import RegistrationState


class RegistrationError(Exception):
    """Base class for registration domain errors."""

    state: RegistrationState = RegistrationState.INTERNAL_ERROR


class ValidationError(RegistrationError):
    """Submitted fields are malformed or the user-facing token is wrong."""

    def __init__(self, state: RegistrationState, reason: str) -> None:
        super().__init__(reason)
        self.state = state


class AbuseBlocked(RegistrationError):
    """Actor is temporarily blocked after too many failures."""

    state = RegistrationState.BLOCKED


class UpstreamError(RegistrationError):
    """Base class for failures reported by or talking to the homeserver."""

    pass


class UpstreamAuthError(UpstreamError):
    """Homeserver rejected the registration MAC (shared secret mismatch)."""

    state = RegistrationState.WRONG_SHARED_SECRET


class UpstreamConflict(UpstreamError):
    """Homeserver reports that the user id is already taken."""

    state = RegistrationState.USER_EXISTS


class UpstreamUnavailable(UpstreamError):
    """Homeserver could not be reached or timed out."""

    pass


class ProtocolError(UpstreamError):
    """Homeserver answered with an unexpected status or body."""

    pass
