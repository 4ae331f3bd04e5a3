"""synapse-signup - Token-gated self-registration broker for Synapse homeservers."""

__version__ = "0.1.0"
