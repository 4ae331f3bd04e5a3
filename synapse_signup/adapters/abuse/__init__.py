"""Abuse tracker adapters - Failure counting backends."""

from .memory import AttemptRecord, InMemoryAbuseTracker

__all__ = ["AttemptRecord", "InMemoryAbuseTracker"]
