"""
Shared fixtures for adversarial tests.

Provides common test infrastructure for race condition and brute force tests.
"""

import pytest

from synapse_signup.adapters.abuse.memory import InMemoryAbuseTracker
from tests.fakes import FakeClock


@pytest.fixture
def strict_tracker(clock: FakeClock) -> InMemoryAbuseTracker:
    """Tracker with a low threshold and a long block, as an operator under attack would set."""
    return InMemoryAbuseTracker(
        max_failures=3,
        block_seconds=24 * 60 * 60,
        failure_window_seconds=24 * 60 * 60,
        max_actors=1000,
        clock=clock,
    )
