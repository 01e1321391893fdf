from .ledger import MultiVaultProfitClaimLedger, ProfitClaimLedger
from .models import ClaimSettings, MultiClaimState, SingleClaimState, UserVaultClaim

__all__ = [
    "ClaimSettings",
    "MultiClaimState",
    "MultiVaultProfitClaimLedger",
    "ProfitClaimLedger",
    "SingleClaimState",
    "UserVaultClaim",
]
