"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
the registration broker and the submitting actor into routes.
"""

from fastapi import Depends, Request

from synapse_signup.adapters.abuse.memory import InMemoryAbuseTracker
from synapse_signup.adapters.homeserver.synapse import SynapseAdminClient
from synapse_signup.config.settings import Settings, get_settings
from synapse_signup.domain.ports import Actor
from synapse_signup.domain.registration import RegistrationBroker


def get_abuse_tracker(request: Request) -> InMemoryAbuseTracker:
    """
    Get abuse tracker from app state.

    The tracker is created during app lifespan startup and shared by every request.
    """
    return request.app.state.abuse_tracker


def get_homeserver(
    request: Request, settings: Settings = Depends(get_settings)
) -> SynapseAdminClient:
    """Create Synapse adapter around the shared HTTP client from app state."""
    return SynapseAdminClient(
        client=request.app.state.http_client,
        server_url=settings.matrix_server,
        shared_secret=settings.matrix_shared_secret.get_secret_value(),
    )


def get_registration_broker(
    homeserver: SynapseAdminClient = Depends(get_homeserver),
    abuse_tracker: InMemoryAbuseTracker = Depends(get_abuse_tracker),
    settings: Settings = Depends(get_settings),
) -> RegistrationBroker:
    """
    Create registration broker with injected dependencies.

    Wires together the homeserver adapter and abuse tracker for the domain service.
    """
    return RegistrationBroker(
        homeserver=homeserver,
        abuse_tracker=abuse_tracker,
        expected_token=settings.matrix_token,
        min_password_length=settings.password_min_length,
        count_user_exists_as_failure=settings.count_user_exists_as_failure,
    )


def get_actor(request: Request, settings: Settings = Depends(get_settings)) -> Actor:
    """
    Derive the rate-limiting actor for the current request.

    Uses the peer address only. Behind a reverse proxy, uvicorn's proxy
    headers middleware rewrites the peer from X-Forwarded-For, and only
    for connections from ``forwarded_allow_ips``; the header itself is
    never read here. The fingerprint header is only read when configured.
    """
    address = request.client.host if request.client else "unknown"

    fingerprint = None
    if settings.fingerprint_header:
        fingerprint = request.headers.get(settings.fingerprint_header) or None
    return Actor(address=address, fingerprint=fingerprint)
