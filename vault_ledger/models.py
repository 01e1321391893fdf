"""State records owned by a single vault ledger."""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet


@dataclass(frozen=True)
class Strategy:
    """Risk limits for operator trades. Replaced wholesale, never merged."""

    max_drawdown_bp: int = 2_000
    target_return_bp: int = 1_000
    rebalance_interval_seconds: int = 86_400
    allowed_targets: FrozenSet[str] = frozenset()
    active: bool = True

    def to_dict(self) -> Dict[str, object]:
        return {
            "max_drawdown_bp": self.max_drawdown_bp,
            "target_return_bp": self.target_return_bp,
            "rebalance_interval_seconds": self.rebalance_interval_seconds,
            "allowed_targets": sorted(self.allowed_targets),
            "active": self.active,
        }


@dataclass
class Metrics:
    tvl: int = 0
    apy_bp: int = 0
    user_count: int = 0
    total_profits: int = 0
    total_fees: int = 0
    high_water_mark: int = 0
    last_rebalance_time: int = 0
    max_drawdown_seen: int = 0
    emergency: bool = False

    def to_dict(self) -> Dict[str, object]:
        return {
            "tvl": self.tvl,
            "apy_bp": self.apy_bp,
            "user_count": self.user_count,
            "total_profits": self.total_profits,
            "total_fees": self.total_fees,
            "high_water_mark": self.high_water_mark,
            "last_rebalance_time": self.last_rebalance_time,
            "max_drawdown_seen": self.max_drawdown_seen,
            "emergency": self.emergency,
        }


@dataclass
class UserPosition:
    """Observational bookkeeping per depositor. Never consulted by share math."""

    total_deposited: int = 0
    total_withdrawn: int = 0
    realized_profit: int = 0
    high_water_mark: int = 0
    is_active: bool = False
    deposit_count: int = 0
    withdraw_count: int = 0
    first_deposit_time: int = 0
    last_deposit_time: int = 0
    last_withdraw_time: int = 0

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_deposited": self.total_deposited,
            "total_withdrawn": self.total_withdrawn,
            "realized_profit": self.realized_profit,
            "high_water_mark": self.high_water_mark,
            "is_active": self.is_active,
            "deposit_count": self.deposit_count,
            "withdraw_count": self.withdraw_count,
            "first_deposit_time": self.first_deposit_time,
            "last_deposit_time": self.last_deposit_time,
            "last_withdraw_time": self.last_withdraw_time,
        }


@dataclass
class VaultState:
    strategy: Strategy
    total_shares: int = 0
    total_assets: int = 0
    shares: Dict[str, int] = field(default_factory=dict)
    positions: Dict[str, UserPosition] = field(default_factory=dict)
    metrics: Metrics = field(default_factory=Metrics)
    paused: bool = False
