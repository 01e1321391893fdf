"""Claim records owned by the profit claim ledgers."""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class UserVaultClaim:
    claimable_amount: int = 0
    last_profit_timestamp: int = 0

    def locked_until(self, lockup_period: int) -> int:
        return self.last_profit_timestamp + lockup_period


@dataclass
class ClaimSettings:
    lockup_period: int
    early_withdrawal_fee_bp: int


@dataclass
class SingleClaimState:
    settings: ClaimSettings
    claims: Dict[str, UserVaultClaim] = field(default_factory=dict)
    total_claimable: int = 0


@dataclass
class MultiClaimState:
    settings: ClaimSettings
    claims: Dict[str, Dict[str, UserVaultClaim]] = field(default_factory=dict)
    user_totals: Dict[str, int] = field(default_factory=dict)
    total_claimable: int = 0
