from .distributor import RevenueDistributor
from .models import DistributorState, Stakeholder

__all__ = [
    "DistributorState",
    "RevenueDistributor",
    "Stakeholder",
]
