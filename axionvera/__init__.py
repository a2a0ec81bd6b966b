"""Chain parameter governance, node configuration, consensus voting and vault error and event models."""

__version__ = "0.1.0"

__all__ = [
    "chain_params",
    "config",
    "consensus",
    "exceptions",
    "vault_errors",
    "vault_events",
]