"""Operator CLI for the vault ledger system."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional

from profit_claims.ledger import MultiVaultProfitClaimLedger
from vault_core.config import LedgerConfig, load_config
from vault_core.errors import LedgerError
from vault_system.assembly import SIMULATED_TARGET, VaultSystem, build_system
from vault_system.simulator import encode_trade

DEFAULT_START_TIME = 1_700_000_000


class _ReplayClock:
    def __init__(self, start: int) -> None:
        self.now = start

    def __call__(self) -> int:
        return self.now


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="vault-os")
    parser.add_argument("--log-level", default="WARNING")
    subparsers = parser.add_subparsers(dest="command", required=True)

    config_parser = subparsers.add_parser("config")
    config_sub = config_parser.add_subparsers(dest="config_command", required=True)
    config_show = config_sub.add_parser("show")
    config_show.add_argument("--config")
    config_show.set_defaults(func=_config_show)

    replay_parser = subparsers.add_parser("replay")
    replay_parser.add_argument("--script", required=True)
    replay_parser.add_argument("--config")
    replay_parser.add_argument("--multi-vault", action="store_true")
    replay_parser.add_argument("--start-time", type=int, default=DEFAULT_START_TIME)
    replay_parser.add_argument("--no-events", action="store_true")
    replay_parser.set_defaults(func=_replay)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        return args.func(args)
    except (ValueError, LedgerError, KeyError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2


def _config_show(args: argparse.Namespace) -> int:
    config = _load_config(args.config)
    print(json.dumps(config.to_dict(), indent=2))
    return 0


def _replay(args: argparse.Namespace) -> int:
    operations = _load_script(args.script)
    clock = _ReplayClock(args.start_time)
    system = build_system(
        config=_load_config(args.config),
        time_provider=clock,
        multi_vault=args.multi_vault,
    )

    results = []
    for index, operation in enumerate(operations, start=1):
        if not isinstance(operation, dict) or "op" not in operation:
            raise ValueError(f"Operation {index} must be an object with an 'op' key.")
        expect_error = bool(operation.get("expect_error", False))
        try:
            outcome = _apply(system, clock, operation)
        except LedgerError as exc:
            if not expect_error:
                raise LedgerError(f"Operation {index} ({operation['op']}) failed: {exc}") from exc
            results.append(
                {"index": index, "op": operation["op"], "error": type(exc).__name__, "message": str(exc)}
            )
            continue
        if expect_error:
            raise ValueError(f"Operation {index} ({operation['op']}) was expected to fail.")
        results.append({"index": index, "op": operation["op"], "result": outcome})

    output: Dict[str, object] = {"results": results, "state": system.snapshot()}
    if not args.no_events:
        output["events"] = [event.to_dict() for event in system.events.records()]
    print(json.dumps(output, indent=2))
    return 0


def _apply(system: VaultSystem, clock: _ReplayClock, op: dict) -> object:
    name = op["op"]
    if name == "advance":
        clock.now += int(op["seconds"])
        return clock.now
    handler = _OPERATIONS.get(name)
    if handler is None:
        raise ValueError(f"Unsupported operation: {name}")
    return handler(system, op)


def _op_trade(system: VaultSystem, op: dict) -> object:
    payload = encode_trade(int(op.get("delta", 0)), bool(op.get("fail", False)))
    return system.vault.execute_trade(op["caller"], op.get("target", SIMULATED_TARGET), payload)


def _op_update_strategy(system: VaultSystem, op: dict) -> object:
    strategy = system.vault.update_strategy(
        op["caller"],
        max_drawdown_bp=int(op["max_drawdown_bp"]),
        target_return_bp=int(op["target_return_bp"]),
        rebalance_interval_seconds=int(op["rebalance_interval_seconds"]),
        allowed_targets=tuple(op.get("allowed_targets", (SIMULATED_TARGET,))),
        active=bool(op.get("active", True)),
    )
    return strategy.to_dict()


def _op_claim(system: VaultSystem, op: dict) -> object:
    return system.claims.claim(op["caller"], int(op["amount"]))


def _op_reinvest(system: VaultSystem, op: dict) -> object:
    claims = system.claims
    if isinstance(claims, MultiVaultProfitClaimLedger):
        return claims.reinvest(op["caller"], op["vault"], int(op["amount"]))
    if op.get("vault", claims.vault) != claims.vault:
        raise ValueError("Claims are bound to a single vault.")
    return claims.reinvest(op["caller"], int(op["amount"]))


_OPERATIONS: Dict[str, Callable[[VaultSystem, dict], object]] = {
    "mint": lambda s, op: s.book.mint(op["account"], int(op["amount"])),
    "approve": lambda s, op: s.book.approve(op["owner"], op["spender"], int(op["amount"])),
    "deposit": lambda s, op: s.vault.deposit(op["caller"], int(op["amount"])),
    "withdraw": lambda s, op: s.vault.withdraw(op["caller"], int(op["shares"])),
    "emergency_withdraw": lambda s, op: s.vault.emergency_withdraw(op["caller"]),
    "trade": _op_trade,
    "update_strategy": _op_update_strategy,
    "pause": lambda s, op: s.vault.pause(op["caller"]),
    "unpause": lambda s, op: s.vault.unpause(op["caller"]),
    "trigger_emergency": lambda s, op: s.vault.trigger_emergency(op["caller"]),
    "resolve_emergency": lambda s, op: s.vault.resolve_emergency(op["caller"]),
    "receive_revenue": lambda s, op: s.distributor.receive_revenue(
        op["caller"], int(op["amount"]), op.get("source", "manual")
    ),
    "add_stakeholder": lambda s, op: s.distributor.add_stakeholder(
        op["caller"], op["stakeholder_id"], op["payout_target"], int(op["shares_bp"])
    ),
    "update_stakeholder": lambda s, op: s.distributor.update_stakeholder(
        op["caller"], op["stakeholder_id"], op["payout_target"], int(op["shares_bp"])
    ),
    "set_stakeholder_status": lambda s, op: s.distributor.set_stakeholder_status(
        op["caller"], op["stakeholder_id"], bool(op["active"])
    ),
    "distribute": lambda s, op: s.distributor.distribute(op["caller"], op["stakeholder_id"]),
    "claim": _op_claim,
    "reinvest": _op_reinvest,
    "set_lockup_period": lambda s, op: s.claims.set_lockup_period(op["caller"], int(op["seconds"])),
    "set_early_withdrawal_fee": lambda s, op: s.claims.set_early_withdrawal_fee(
        op["caller"], int(op["fee_bp"])
    ),
}


def _load_config(path: Optional[str]) -> LedgerConfig:
    return load_config(Path(path)) if path else LedgerConfig()


def _load_script(source: str) -> list:
    if source == "-":
        payload = json.loads(sys.stdin.read())
    else:
        payload = json.loads(Path(source).read_text())
    if not isinstance(payload, list):
        raise ValueError("Replay script must be a JSON list of operations.")
    return payload


if __name__ == "__main__":
    raise SystemExit(main())
