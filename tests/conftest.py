"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- A controllable clock and fresh abuse tracker per test
- A broker wired to an in-memory fake homeserver
- A fake Synapse admin API served through httpx.MockTransport
"""

from collections.abc import Callable

import pytest

from synapse_signup.adapters.abuse.memory import InMemoryAbuseTracker
from synapse_signup.domain.ports import Actor, RegistrationRequest
from synapse_signup.domain.registration import RegistrationBroker
from tests.fakes import TOKEN, FakeClock, FakeHomeserver, FakeSynapse


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def tracker(clock: FakeClock) -> InMemoryAbuseTracker:
    """Fresh tracker: 5 failures, 1 hour block, 1 day window."""
    return InMemoryAbuseTracker(
        max_failures=5,
        block_seconds=3600,
        failure_window_seconds=86400,
        max_actors=100,
        clock=clock,
    )


@pytest.fixture
def homeserver() -> FakeHomeserver:
    return FakeHomeserver()


@pytest.fixture
def broker(homeserver: FakeHomeserver, tracker: InMemoryAbuseTracker) -> RegistrationBroker:
    return RegistrationBroker(
        homeserver=homeserver,
        abuse_tracker=tracker,
        expected_token=TOKEN,
        min_password_length=3,
    )


@pytest.fixture
def actor() -> Actor:
    return Actor(address="203.0.113.7")


@pytest.fixture
def fake_synapse() -> FakeSynapse:
    return FakeSynapse()


@pytest.fixture
def make_request() -> Callable[..., RegistrationRequest]:
    """Factory for a valid submission with per-field overrides."""

    def _make(**overrides: str) -> RegistrationRequest:
        fields = {
            "username": "alice",
            "password": "hunter23",
            "password_confirmation": "hunter23",
            "token": TOKEN,
        }
        fields.update(overrides)
        if "password" in overrides and "password_confirmation" not in overrides:
            fields["password_confirmation"] = overrides["password"]
        return RegistrationRequest(**fields)

    return _make
