"""Share/asset ledger with drawdown-guarded trade settlement."""

import logging
from contextlib import contextmanager
from dataclasses import replace
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Tuple

from vault_core.capabilities import ADMIN, EMERGENCY, OPERATOR, require
from vault_core.config import BASIS_POINTS, SECONDS_PER_YEAR
from vault_core.context import LedgerContext
from vault_core.errors import (
    DrawdownExceeded,
    EmergencyActive,
    EmergencyNotActive,
    InsufficientShares,
    InvalidStrategy,
    LedgerError,
    NoShareholders,
    ProtocolNotAllowed,
    RebalanceTooSoon,
    StrategyInactive,
    TradeCallFailed,
    TradeLoss,
    VaultNotPaused,
    VaultPaused,
    ZeroAmount,
    ZeroShares,
)
from vault_core.guard import ReentrancyGuard
from vault_core.ports import AssetTransferPort, ProfitSink, RevenueSink, TradeRouter

from .models import Metrics, Strategy, UserPosition, VaultState

logger = logging.getLogger(__name__)


class VaultLedger:
    """Owns share balances, total assets, strategy limits and trade settlement.

    Internal bookkeeping is committed before any outbound transfer. Every
    mutating call holds the instance lock and joins the shared journal, so a
    failure anywhere (including inside a collaborator) leaves no trace.
    """

    def __init__(
        self,
        context: LedgerContext,
        port: AssetTransferPort,
        router: TradeRouter,
        revenue_sink: RevenueSink,
        profit_sink: ProfitSink,
        strategy: Optional[Strategy] = None,
    ) -> None:
        self._context = context
        self._port = port
        self._router = router
        self._revenue_sink = revenue_sink
        self._profit_sink = profit_sink
        self._state = VaultState(strategy=strategy or Strategy())
        self._guard = ReentrancyGuard(f"VaultLedger({port.account})")

    @property
    def account(self) -> str:
        return self._port.account

    @property
    def total_shares(self) -> int:
        return self._state.total_shares

    @property
    def total_assets(self) -> int:
        return self._state.total_assets

    @property
    def paused(self) -> bool:
        return self._state.paused

    @property
    def strategy(self) -> Strategy:
        return self._state.strategy

    @property
    def metrics(self) -> Metrics:
        return replace(self._state.metrics)

    def snapshot_state(self) -> VaultState:
        return self._state

    def restore_state(self, state: VaultState) -> None:
        self._state = state

    def shares_of(self, user: str) -> int:
        return self._state.shares.get(user, 0)

    def position_of(self, user: str) -> UserPosition:
        return replace(self._state.positions.get(user, UserPosition()))

    def holders(self) -> Tuple[str, ...]:
        return tuple(user for user, amount in self._state.shares.items() if amount > 0)

    def is_protocol_allowed(self, target: str) -> bool:
        return target in self._state.strategy.allowed_targets

    def get_asset_value_of_shares(self, share_amount: int) -> int:
        if self._state.total_shares == 0:
            return 0
        return share_amount * self._state.total_assets // self._state.total_shares

    def snapshot(self) -> Dict[str, object]:
        return {
            "account": self.account,
            "total_shares": self._state.total_shares,
            "total_assets": self._state.total_assets,
            "paused": self._state.paused,
            "shares": dict(self._state.shares),
            "positions": {
                user: position.to_dict() for user, position in self._state.positions.items()
            },
            "strategy": self._state.strategy.to_dict(),
            "metrics": self._state.metrics.to_dict(),
        }

    def deposit(self, caller: str, amount: int) -> int:
        _require_amount(amount)
        with self._mutation():
            state = self._state
            self._require_not_paused()
            if state.total_shares == 0:
                minted = amount
            elif state.total_assets == 0:
                raise ZeroShares("Vault holds no assets backing its outstanding shares.")
            else:
                minted = amount * state.total_shares // state.total_assets
            if minted == 0:
                raise ZeroShares(f"Deposit of {amount} would mint zero shares.")

            now = self._context.now()
            state.total_shares += minted
            state.shares[caller] = state.shares.get(caller, 0) + minted
            state.total_assets += amount
            state.metrics.tvl = state.total_assets

            position = state.positions.setdefault(caller, UserPosition())
            if not position.is_active:
                position.is_active = True
                state.metrics.user_count += 1
            if position.first_deposit_time == 0:
                position.first_deposit_time = now
            position.total_deposited += amount
            position.deposit_count += 1
            position.last_deposit_time = now
            value = state.shares[caller] * state.total_assets // state.total_shares
            position.high_water_mark = max(position.high_water_mark, value)

            self._context.journal.emit(
                "Deposit", self.account, user=caller, assets=amount, shares=minted
            )
            self._port.pull(caller, amount)
        logger.info("%s deposited %d for %d shares.", caller, amount, minted)
        return minted

    def withdraw(self, caller: str, share_amount: int) -> int:
        _require_amount(share_amount)
        with self._mutation():
            state = self._state
            self._require_not_paused()
            held = state.shares.get(caller, 0)
            if share_amount > held:
                raise InsufficientShares(f"{caller} holds {held} shares, asked for {share_amount}.")
            assets = share_amount * state.total_assets // state.total_shares
            if assets == 0:
                raise ZeroAmount(f"Burning {share_amount} shares would return no assets.")

            self._burn(caller, share_amount, assets)
            position = state.positions[caller]
            withdrawn_before = position.total_withdrawn
            position.total_withdrawn += assets
            position.withdraw_count += 1
            position.last_withdraw_time = self._context.now()
            if (
                withdrawn_before <= position.total_deposited
                and position.total_withdrawn > position.total_deposited
            ):
                position.realized_profit += position.total_withdrawn - position.total_deposited

            self._context.journal.emit(
                "Withdraw", self.account, user=caller, assets=assets, shares=share_amount
            )
            self._port.push(caller, assets)
        logger.info("%s withdrew %d for %d shares.", caller, assets, share_amount)
        return assets

    def emergency_withdraw(self, caller: str) -> int:
        """Pay out the caller's full share value less the emergency fee."""

        with self._mutation():
            state = self._state
            if not state.paused:
                raise VaultNotPaused("Emergency withdrawal requires a paused vault.")
            if not state.metrics.emergency:
                raise EmergencyNotActive("Emergency withdrawal requires an active emergency.")
            held = state.shares.get(caller, 0)
            if held == 0:
                raise InsufficientShares(f"{caller} holds no shares.")

            value = held * state.total_assets // state.total_shares
            fee = value * self._context.config.emergency_fee_bp // BASIS_POINTS
            net = value - fee
            self._burn(caller, held, value)
            position = state.positions[caller]
            position.total_withdrawn += value
            position.withdraw_count += 1
            position.last_withdraw_time = self._context.now()

            self._context.journal.emit(
                "EmergencyWithdrawal", self.account, user=caller, net=net, fee=fee
            )
            if net > 0:
                self._port.push(caller, net)
            if fee > 0:
                self._forward_fee(fee, "emergency_fee")
        logger.warning("%s emergency-withdrew %d (fee %d).", caller, net, fee)
        return net

    def execute_trade(self, caller: str, target: str, payload: bytes) -> int:
        """Run an opaque operator trade and settle any realized profit.

        Returns the realized profit (0 when the balance is unchanged).
        """

        require(self._context.gate, caller, OPERATOR)
        with self._mutation():
            state = self._state
            strategy = state.strategy
            metrics = state.metrics
            self._require_not_paused()
            if not strategy.active:
                raise StrategyInactive("Strategy is inactive.")
            if target not in strategy.allowed_targets:
                raise ProtocolNotAllowed(f"Target {target} is not on the allow-list.")
            now = self._context.now()
            if now < metrics.last_rebalance_time + strategy.rebalance_interval_seconds:
                raise RebalanceTooSoon(
                    f"Next trade allowed at {metrics.last_rebalance_time + strategy.rebalance_interval_seconds}."
                )

            pre = self._port.balance()
            self._call_target(target, payload)
            post = self._port.balance()
            if post < pre:
                raise TradeLoss(f"Trade lost {pre - post}.")

            if post < metrics.high_water_mark:
                drawdown_bp = (
                    (metrics.high_water_mark - post) * BASIS_POINTS // metrics.high_water_mark
                )
                if drawdown_bp > strategy.max_drawdown_bp:
                    raise DrawdownExceeded(
                        f"Drawdown {drawdown_bp} bp exceeds limit {strategy.max_drawdown_bp} bp."
                    )
                metrics.max_drawdown_seen = max(metrics.max_drawdown_seen, drawdown_bp)

            elapsed = now - metrics.last_rebalance_time if metrics.last_rebalance_time else 0
            self._context.journal.emit(
                "TradeExecuted", self.account, target=target, payload=payload.hex()
            )

            profit = post - pre
            if profit > 0 and state.total_shares == 0:
                raise NoShareholders("Profit cannot be settled on a vault with no shares.")
            if profit > 0:
                fee = profit * self._context.config.performance_fee_bp // BASIS_POINTS
                remainder = profit - fee
                state.total_assets -= fee
                metrics.total_profits += profit
                metrics.total_fees += fee
                metrics.high_water_mark = max(metrics.high_water_mark, post)
                if pre > 0 and elapsed > 0:
                    metrics.apy_bp = remainder * BASIS_POINTS * SECONDS_PER_YEAR // (pre * elapsed)
                self._context.journal.emit("ProfitRealized", self.account, profit=profit, fee=fee)
                if fee > 0:
                    self._forward_fee(fee, "performance_fee")
                if remainder > 0:
                    self._distribute_remainder(remainder)

            metrics.last_rebalance_time = now
            state.total_assets = self._port.balance()
            metrics.tvl = state.total_assets
        logger.info("Trade on %s settled with profit %d.", target, profit)
        return profit

    def update_strategy(
        self,
        caller: str,
        max_drawdown_bp: int,
        target_return_bp: int,
        rebalance_interval_seconds: int,
        allowed_targets: Iterable[str],
        active: bool = True,
    ) -> Strategy:
        require(self._context.gate, caller, ADMIN)
        strategy = Strategy(
            max_drawdown_bp=max_drawdown_bp,
            target_return_bp=target_return_bp,
            rebalance_interval_seconds=rebalance_interval_seconds,
            allowed_targets=_target_set(allowed_targets),
            active=active,
        )
        self._validate_strategy(strategy)
        with self._mutation():
            self._state.strategy = strategy
            self._context.journal.emit("StrategyUpdated", self.account, **strategy.to_dict())
        logger.info("Strategy replaced: %s", strategy.to_dict())
        return strategy

    def pause(self, caller: str) -> None:
        require(self._context.gate, caller, ADMIN)
        with self._mutation():
            self._state.paused = True
            self._context.journal.emit("Paused", self.account, by=caller)

    def unpause(self, caller: str) -> None:
        require(self._context.gate, caller, ADMIN)
        with self._mutation():
            if self._state.metrics.emergency:
                raise EmergencyActive("Resolve the emergency before unpausing.")
            self._state.paused = False
            self._context.journal.emit("Unpaused", self.account, by=caller)

    def trigger_emergency(self, caller: str) -> None:
        require(self._context.gate, caller, EMERGENCY)
        with self._mutation():
            self._state.paused = True
            self._state.metrics.emergency = True
            self._context.journal.emit("EmergencyTriggered", self.account, by=caller)
        logger.warning("Emergency triggered on %s by %s.", self.account, caller)

    def resolve_emergency(self, caller: str) -> None:
        require(self._context.gate, caller, EMERGENCY)
        with self._mutation():
            if not self._state.metrics.emergency:
                raise EmergencyNotActive("No emergency to resolve.")
            self._state.metrics.emergency = False
            self._state.paused = False
            self._context.journal.emit("EmergencyResolved", self.account, by=caller)

    @contextmanager
    def _mutation(self) -> Iterator[None]:
        with self._guard.hold(), self._context.journal.atomic(self):
            yield

    def _require_not_paused(self) -> None:
        if self._state.paused:
            raise VaultPaused("Vault is paused.")

    def _burn(self, user: str, share_amount: int, assets: int) -> None:
        state = self._state
        remaining = state.shares[user] - share_amount
        state.total_shares -= share_amount
        state.total_assets -= assets
        state.metrics.tvl = state.total_assets
        if remaining == 0:
            del state.shares[user]
            state.positions[user].is_active = False
            state.metrics.user_count -= 1
        else:
            state.shares[user] = remaining

    def _call_target(self, target: str, payload: bytes) -> None:
        try:
            succeeded = self._router.call(target, payload)
        except LedgerError:
            raise
        except Exception as exc:
            raise TradeCallFailed(f"Trade call to {target} raised: {exc}") from exc
        if not succeeded:
            raise TradeCallFailed(f"Trade call to {target} failed.")

    def _forward_fee(self, fee: int, source: str) -> None:
        self._port.approve(self._revenue_sink.account, fee)
        self._revenue_sink.receive_revenue(self.account, fee, source)

    def _distribute_remainder(self, remainder: int) -> None:
        # Pro rata by shares; flooring dust goes to the earliest holder.
        total = self._state.total_shares
        allocations: List[Tuple[str, int]] = [
            (user, remainder * held // total) for user, held in self._state.shares.items()
        ]
        if not allocations:
            return
        dust = remainder - sum(amount for _, amount in allocations)
        first_user, first_amount = allocations[0]
        allocations[0] = (first_user, first_amount + dust)
        for user, amount in allocations:
            if amount > 0:
                self._profit_sink.distribute_profits(self.account, user, amount)

    def _validate_strategy(self, strategy: Strategy) -> None:
        config = self._context.config
        if not 0 <= strategy.max_drawdown_bp <= BASIS_POINTS:
            raise InvalidStrategy(f"max_drawdown_bp must be within 0..{BASIS_POINTS}.")
        if not 0 <= strategy.target_return_bp <= config.max_target_return_bp:
            raise InvalidStrategy(
                f"target_return_bp must be within 0..{config.max_target_return_bp}."
            )
        if strategy.rebalance_interval_seconds < config.min_rebalance_interval_seconds:
            raise InvalidStrategy(
                "rebalance_interval_seconds must be at least "
                f"{config.min_rebalance_interval_seconds}."
            )


def _target_set(targets: Iterable[str]) -> FrozenSet[str]:
    values = frozenset(targets)
    if any(not target for target in values):
        raise InvalidStrategy("Allowed targets must be non-empty identifiers.")
    return values


def _require_amount(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ZeroAmount("Amount must be a positive integer.")
