from .assembly import (
    CLAIMS_ACCOUNT,
    DISTRIBUTOR_ACCOUNT,
    SIMULATED_TARGET,
    VAULT_ACCOUNT,
    VaultSystem,
    build_system,
)
from .simulator import encode_trade, simulated_venue

__all__ = [
    "CLAIMS_ACCOUNT",
    "DISTRIBUTOR_ACCOUNT",
    "SIMULATED_TARGET",
    "VAULT_ACCOUNT",
    "VaultSystem",
    "build_system",
    "encode_trade",
    "simulated_venue",
]
