"""
Domain layer - Pure business logic with zero framework imports.

This package contains the registration broker: input validation,
the outcome vocabulary and the orchestration of the abuse tracker and
homeserver ports. Infrastructure lives behind the interfaces in ports.py.
"""

from .exceptions import (
    AbuseBlocked,
    ProtocolError,
    RegistrationError,
    UpstreamAuthError,
    UpstreamConflict,
    UpstreamError,
    UpstreamUnavailable,
    ValidationError,
)
from .ports import (
    AbuseDecision,
    AbuseTracker,
    Actor,
    Homeserver,
    RegistrationOutcome,
    RegistrationRequest,
    RegistrationState,
)
from .registration import RegistrationBroker

__all__ = [
    "AbuseBlocked",
    "AbuseDecision",
    "AbuseTracker",
    "Actor",
    "Homeserver",
    "ProtocolError",
    "RegistrationBroker",
    "RegistrationError",
    "RegistrationOutcome",
    "RegistrationRequest",
    "RegistrationState",
    "UpstreamAuthError",
    "UpstreamConflict",
    "UpstreamError",
    "UpstreamUnavailable",
    "ValidationError",
]
