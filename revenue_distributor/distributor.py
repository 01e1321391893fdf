"""Lifetime-revenue split across basis-point stakeholders.

Entitlement is always measured against the lifetime ``total_revenue``, so
``distribute`` can be called at any cadence; only ``claimed`` must be exact.
"""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Iterator, Tuple

from vault_core.capabilities import ADMIN, require
from vault_core.config import BASIS_POINTS
from vault_core.context import LedgerContext
from vault_core.errors import (
    AllocationBelowClaimed,
    AllocationExceeded,
    InvalidAllocation,
    InvalidIdentifier,
    NothingToClaim,
    StakeholderExists,
    StakeholderInactive,
    StakeholderNotFound,
    ZeroAmount,
)
from vault_core.guard import ReentrancyGuard
from vault_core.ports import AssetTransferPort

from .models import DistributorState, Stakeholder

logger = logging.getLogger(__name__)


class RevenueDistributor:
    def __init__(self, context: LedgerContext, port: AssetTransferPort) -> None:
        self._context = context
        self._port = port
        self._state = DistributorState()
        self._guard = ReentrancyGuard(f"RevenueDistributor({port.account})")

    @property
    def account(self) -> str:
        return self._port.account

    @property
    def total_revenue(self) -> int:
        return self._state.total_revenue

    @property
    def total_distributed(self) -> int:
        return self._state.total_distributed

    @property
    def allocated_bp(self) -> int:
        return self._state.allocated_bp

    def snapshot_state(self) -> DistributorState:
        return self._state

    def restore_state(self, state: DistributorState) -> None:
        self._state = state

    def stakeholder(self, stakeholder_id: str) -> Stakeholder:
        return replace(self._require_stakeholder(stakeholder_id))

    def stakeholders(self) -> Tuple[Stakeholder, ...]:
        return tuple(replace(item) for item in self._state.stakeholders.values())

    def pending(self, stakeholder_id: str) -> int:
        holder = self._require_stakeholder(stakeholder_id)
        return holder.entitlement(self._state.total_revenue) - holder.claimed

    def receive_revenue(self, caller: str, amount: int, source: str) -> None:
        """Top up lifetime revenue. Open to any caller with funds and allowance."""

        _require_amount(amount)
        with self._mutation():
            self._state.total_revenue += amount
            self._context.journal.emit(
                "RevenueReceived", self.account, amount=amount, source=source, payer=caller
            )
            self._port.pull(caller, amount)
        logger.info("Received %d revenue from %s (%s).", amount, caller, source)

    def distribute(self, caller: str, stakeholder_id: str) -> int:
        with self._mutation():
            holder = self._require_stakeholder(stakeholder_id)
            if not holder.active:
                raise StakeholderInactive(f"Stakeholder {stakeholder_id} is inactive.")
            if not holder.payout_target:
                raise InvalidIdentifier(f"Stakeholder {stakeholder_id} has no payout target.")
            claimable = holder.entitlement(self._state.total_revenue) - holder.claimed
            if claimable <= 0:
                raise NothingToClaim(f"Nothing to distribute to {stakeholder_id}.")

            holder.claimed += claimable
            self._state.total_distributed += claimable
            self._context.journal.emit(
                "RevenueDistributed",
                self.account,
                stakeholder_id=stakeholder_id,
                amount=claimable,
            )
            self._port.push(holder.payout_target, claimable)
        logger.info("Distributed %d to stakeholder %s.", claimable, stakeholder_id)
        return claimable

    def add_stakeholder(
        self, caller: str, stakeholder_id: str, payout_target: str, shares_bp: int
    ) -> None:
        require(self._context.gate, caller, ADMIN)
        _require_identifier(stakeholder_id, payout_target)
        _require_shares(shares_bp)
        with self._mutation():
            if stakeholder_id in self._state.stakeholders:
                raise StakeholderExists(f"Stakeholder {stakeholder_id} already exists.")
            self._rebase_allocation(0, shares_bp)
            self._state.stakeholders[stakeholder_id] = Stakeholder(
                stakeholder_id=stakeholder_id,
                payout_target=payout_target,
                shares_bp=shares_bp,
            )
            self._context.journal.emit(
                "StakeholderAdded",
                self.account,
                stakeholder_id=stakeholder_id,
                payout_target=payout_target,
                shares_bp=shares_bp,
            )

    def update_stakeholder(
        self, caller: str, stakeholder_id: str, payout_target: str, shares_bp: int
    ) -> None:
        require(self._context.gate, caller, ADMIN)
        _require_identifier(stakeholder_id, payout_target)
        _require_shares(shares_bp)
        with self._mutation():
            holder = self._require_stakeholder(stakeholder_id)
            if self._state.total_revenue * shares_bp // BASIS_POINTS < holder.claimed:
                raise AllocationBelowClaimed(
                    f"Stakeholder {stakeholder_id} already claimed more than the new share allows."
                )
            if holder.active:
                self._rebase_allocation(holder.shares_bp, shares_bp)
            holder.payout_target = payout_target
            holder.shares_bp = shares_bp
            self._context.journal.emit(
                "StakeholderUpdated",
                self.account,
                stakeholder_id=stakeholder_id,
                payout_target=payout_target,
                shares_bp=shares_bp,
            )

    def set_stakeholder_status(self, caller: str, stakeholder_id: str, active: bool) -> None:
        require(self._context.gate, caller, ADMIN)
        with self._mutation():
            holder = self._require_stakeholder(stakeholder_id)
            if holder.active != active:
                if active:
                    self._rebase_allocation(0, holder.shares_bp)
                else:
                    self._rebase_allocation(holder.shares_bp, 0)
                holder.active = active
            self._context.journal.emit(
                "StakeholderStatusChanged",
                self.account,
                stakeholder_id=stakeholder_id,
                active=active,
            )

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._guard.hold(), self._context.journal.atomic(self):
            yield

    def _rebase_allocation(self, old_bp: int, new_bp: int) -> None:
        updated = self._state.allocated_bp - old_bp + new_bp
        if updated > BASIS_POINTS:
            raise AllocationExceeded(
                f"Active allocations would total {updated} bp (cap {BASIS_POINTS})."
            )
        self._state.allocated_bp = updated

    def _require_stakeholder(self, stakeholder_id: str) -> Stakeholder:
        holder = self._state.stakeholders.get(stakeholder_id)
        if holder is None:
            raise StakeholderNotFound(f"Unknown stakeholder: {stakeholder_id}")
        return holder


def _require_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ZeroAmount("Amount must be a positive integer.")


def _require_identifier(stakeholder_id: str, payout_target: str) -> None:
    if not stakeholder_id:
        raise InvalidIdentifier("Stakeholder id must be non-empty.")
    if not payout_target:
        raise InvalidIdentifier("Payout target must be non-empty.")


def _require_shares(shares_bp: int) -> None:
    if isinstance(shares_bp, bool) or not isinstance(shares_bp, int):
        raise InvalidAllocation("shares_bp must be an integer.")
    if shares_bp <= 0 or shares_bp > BASIS_POINTS:
        raise InvalidAllocation(f"shares_bp must be within 1..{BASIS_POINTS}.")
