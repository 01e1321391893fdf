"""Stakeholder records owned by the revenue distributor."""

from dataclasses import dataclass, field
from typing import Dict


@dataclass
class Stakeholder:
    stakeholder_id: str
    payout_target: str
    shares_bp: int
    active: bool = True
    claimed: int = 0

    def entitlement(self, total_revenue: int) -> int:
        return total_revenue * self.shares_bp // 10_000

    def to_dict(self) -> Dict[str, object]:
        return {
            "stakeholder_id": self.stakeholder_id,
            "payout_target": self.payout_target,
            "shares_bp": self.shares_bp,
            "active": self.active,
            "claimed": self.claimed,
        }


@dataclass
class DistributorState:
    stakeholders: Dict[str, Stakeholder] = field(default_factory=dict)
    total_revenue: int = 0
    total_distributed: int = 0
    allocated_bp: int = 0
