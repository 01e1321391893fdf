"""Per-user profit claims with a lockup window and early-withdrawal fee.

Every new distribution re-arms the lockup for the whole balance held from
that source, including amounts credited earlier.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Optional, Union

from vault_core.capabilities import ADMIN, VAULT, require
from vault_core.config import BASIS_POINTS
from vault_core.context import LedgerContext
from vault_core.errors import (
    FeeTooHigh,
    InsufficientClaimable,
    InvalidIdentifier,
    ValidationError,
    ZeroAmount,
)
from vault_core.guard import ReentrancyGuard
from vault_core.ports import AssetTransferPort, RevenueSink, VaultRegistry

from .models import ClaimSettings, MultiClaimState, SingleClaimState, UserVaultClaim

logger = logging.getLogger(__name__)

ClaimState = Union[SingleClaimState, MultiClaimState]


class _ClaimLedgerBase:
    """Settings, fee arithmetic and payout shared by both ledger variants."""

    def __init__(
        self,
        context: LedgerContext,
        port: AssetTransferPort,
        revenue_sink: RevenueSink,
        state: ClaimState,
    ) -> None:
        self._context = context
        self._port = port
        self._revenue_sink = revenue_sink
        self._state = state
        self._guard = ReentrancyGuard(f"{type(self).__name__}({port.account})")

    @property
    def account(self) -> str:
        return self._port.account

    @property
    def lockup_period(self) -> int:
        return self._state.settings.lockup_period

    @property
    def early_withdrawal_fee_bp(self) -> int:
        return self._state.settings.early_withdrawal_fee_bp

    @property
    def total_claimable(self) -> int:
        return self._state.total_claimable

    def snapshot_state(self) -> ClaimState:
        return self._state

    def restore_state(self, state: ClaimState) -> None:
        self._state = state

    def set_lockup_period(self, caller: str, seconds: int) -> None:
        require(self._context.gate, caller, ADMIN)
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds < 0:
            raise ValidationError("Lockup period must be a non-negative integer.")
        with self._mutation():
            self._state.settings.lockup_period = seconds
            self._context.journal.emit("LockupPeriodUpdated", self.account, seconds=seconds)

    def set_early_withdrawal_fee(self, caller: str, fee_bp: int) -> None:
        require(self._context.gate, caller, ADMIN)
        cap = self._context.config.max_early_withdrawal_fee_bp
        if isinstance(fee_bp, bool) or not isinstance(fee_bp, int) or fee_bp < 0:
            raise ValidationError("Early withdrawal fee must be a non-negative integer.")
        if fee_bp > cap:
            raise FeeTooHigh(f"Early withdrawal fee {fee_bp} bp exceeds cap {cap} bp.")
        with self._mutation():
            self._state.settings.early_withdrawal_fee_bp = fee_bp
            self._context.journal.emit("EarlyWithdrawalFeeUpdated", self.account, fee_bp=fee_bp)

    def _is_locked(self, record: UserVaultClaim, now: int) -> bool:
        return now < record.locked_until(self._state.settings.lockup_period)

    def _early_fee(self, record: UserVaultClaim, amount: int, now: int) -> int:
        if not self._is_locked(record, now):
            return 0
        return amount * self._state.settings.early_withdrawal_fee_bp // BASIS_POINTS

    def _credit(self, record: UserVaultClaim, amount: int, now: int) -> None:
        record.claimable_amount += amount
        record.last_profit_timestamp = now
        self._state.total_claimable += amount

    def _settle(self, user: str, amount: int, fee: int) -> None:
        net = amount - fee
        self._context.journal.emit("ProfitClaimed", self.account, user=user, net=net, fee=fee)
        if net > 0:
            self._port.push(user, net)
        if fee > 0:
            self._port.approve(self._revenue_sink.account, fee)
            self._revenue_sink.receive_revenue(self.account, fee, "early_withdrawal_fee")

    def _grant_reinvest_allowance(self, vault: str, amount: int) -> None:
        current = self._port.allowance(self.account, vault)
        self._port.approve(vault, current + amount)

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._guard.hold(), self._context.journal.atomic(self):
            yield


class ProfitClaimLedger(_ClaimLedgerBase):
    """Single-source claim ledger bound to one vault."""

    def __init__(
        self,
        context: LedgerContext,
        port: AssetTransferPort,
        revenue_sink: RevenueSink,
        vault: str,
    ) -> None:
        if not vault:
            raise InvalidIdentifier("Bound vault must be non-empty.")
        settings = ClaimSettings(
            lockup_period=context.config.lockup_period_seconds,
            early_withdrawal_fee_bp=context.config.early_withdrawal_fee_bp,
        )
        super().__init__(context, port, revenue_sink, SingleClaimState(settings=settings))
        self.vault = vault

    def claimable_of(self, user: str) -> int:
        record = self._state.claims.get(user)
        return record.claimable_amount if record else 0

    def last_profit_timestamp(self, user: str) -> int:
        record = self._state.claims.get(user)
        return record.last_profit_timestamp if record else 0

    def is_locked(self, user: str) -> bool:
        record = self._state.claims.get(user)
        return record is not None and self._is_locked(record, self._context.now())

    def distribute_profits(self, caller: str, user: str, amount: int) -> None:
        require(self._context.gate, caller, VAULT)
        _require_user(user)
        _require_amount(amount)
        with self._mutation():
            record = self._state.claims.setdefault(user, UserVaultClaim())
            self._credit(record, amount, self._context.now())
            self._context.journal.emit("ProfitDistributed", self.account, user=user, amount=amount)
        logger.info("Credited %d claimable profit to %s.", amount, user)

    def claim(self, caller: str, amount: int) -> int:
        _require_amount(amount)
        with self._mutation():
            record = self._state.claims.get(caller)
            available = record.claimable_amount if record else 0
            if amount > available:
                raise InsufficientClaimable(f"Requested {amount}, claimable {available}.")
            fee = self._early_fee(record, amount, self._context.now())
            record.claimable_amount -= amount
            self._state.total_claimable -= amount
            self._settle(caller, amount, fee)
        logger.info("%s claimed %d (fee %d).", caller, amount - fee, fee)
        return amount - fee

    def reinvest(self, caller: str, amount: int) -> None:
        """Debit the claim and let the bound vault pull ``amount`` later."""

        _require_amount(amount)
        with self._mutation():
            record = self._state.claims.get(caller)
            available = record.claimable_amount if record else 0
            if amount > available:
                raise InsufficientClaimable(f"Requested {amount}, claimable {available}.")
            record.claimable_amount -= amount
            self._state.total_claimable -= amount
            self._context.journal.emit(
                "ProfitReinvested", self.account, user=caller, vault=self.vault, amount=amount
            )
            self._grant_reinvest_allowance(self.vault, amount)


class MultiVaultProfitClaimLedger(_ClaimLedgerBase):
    """Claims keyed by (vault, user) with a mirrored per-user total.

    Claims drain vault-scoped balances in registry order; each vault applies
    its own lockup timestamp.
    """

    def __init__(
        self,
        context: LedgerContext,
        port: AssetTransferPort,
        revenue_sink: RevenueSink,
        registry: VaultRegistry,
    ) -> None:
        settings = ClaimSettings(
            lockup_period=context.config.lockup_period_seconds,
            early_withdrawal_fee_bp=context.config.early_withdrawal_fee_bp,
        )
        super().__init__(context, port, revenue_sink, MultiClaimState(settings=settings))
        self._registry = registry

    def claimable_of(self, user: str, vault: Optional[str] = None) -> int:
        if vault is None:
            return self._state.user_totals.get(user, 0)
        record = self._state.claims.get(user, {}).get(vault)
        return record.claimable_amount if record else 0

    def last_profit_timestamp(self, user: str, vault: str) -> int:
        record = self._state.claims.get(user, {}).get(vault)
        return record.last_profit_timestamp if record else 0

    def is_locked(self, user: str, vault: str) -> bool:
        record = self._state.claims.get(user, {}).get(vault)
        return record is not None and self._is_locked(record, self._context.now())

    def distribute_profits(self, caller: str, user: str, amount: int) -> None:
        require(self._context.gate, caller, VAULT)
        _require_user(user)
        _require_amount(amount)
        with self._mutation():
            record = self._state.claims.setdefault(user, {}).setdefault(caller, UserVaultClaim())
            self._credit(record, amount, self._context.now())
            self._state.user_totals[user] = self._state.user_totals.get(user, 0) + amount
            self._context.journal.emit(
                "ProfitDistributed", self.account, vault=caller, user=user, amount=amount
            )
        logger.info("Credited %d claimable profit to %s from vault %s.", amount, user, caller)

    def claim(self, caller: str, amount: int) -> int:
        _require_amount(amount)
        with self._mutation():
            available = self._state.user_totals.get(caller, 0)
            if amount > available:
                raise InsufficientClaimable(f"Requested {amount}, claimable {available}.")

            now = self._context.now()
            records = self._state.claims.get(caller, {})
            remaining = amount
            fee = 0
            for vault in self._registry.list_active_vaults():
                if remaining == 0:
                    break
                record = records.get(vault)
                if record is None or record.claimable_amount == 0:
                    continue
                take = min(remaining, record.claimable_amount)
                fee += self._early_fee(record, take, now)
                record.claimable_amount -= take
                remaining -= take
            if remaining:
                raise InsufficientClaimable(
                    f"Active vaults hold only {amount - remaining} of the requested {amount}."
                )

            self._state.user_totals[caller] = available - amount
            self._state.total_claimable -= amount
            self._settle(caller, amount, fee)
        logger.info("%s claimed %d across vaults (fee %d).", caller, amount - fee, fee)
        return amount - fee

    def reinvest(self, caller: str, vault: str, amount: int) -> None:
        _require_amount(amount)
        if not vault:
            raise InvalidIdentifier("Vault must be non-empty.")
        with self._mutation():
            record = self._state.claims.get(caller, {}).get(vault)
            available = record.claimable_amount if record else 0
            if amount > available:
                raise InsufficientClaimable(
                    f"Requested {amount}, claimable in {vault} is {available}."
                )
            record.claimable_amount -= amount
            self._state.user_totals[caller] -= amount
            self._state.total_claimable -= amount
            self._context.journal.emit(
                "ProfitReinvested", self.account, user=caller, vault=vault, amount=amount
            )
            self._grant_reinvest_allowance(vault, amount)


def _require_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ZeroAmount("Amount must be a positive integer.")


def _require_user(user: str) -> None:
    if not user:
        raise InvalidIdentifier("User must be non-empty.")
