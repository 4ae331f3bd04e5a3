"""Homeserver adapters - Matrix admin API clients."""

from .synapse import HomeserverNonce, SynapseAdminClient, compute_registration_mac

__all__ = ["HomeserverNonce", "SynapseAdminClient", "compute_registration_mac"]
