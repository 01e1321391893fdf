from .ledger import VaultLedger
from .models import Metrics, Strategy, UserPosition, VaultState

__all__ = [
    "Metrics",
    "Strategy",
    "UserPosition",
    "VaultLedger",
    "VaultState",
]
