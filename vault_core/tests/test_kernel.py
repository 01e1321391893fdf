"""Tests for the journal, reentrancy guard, asset book and capability gate."""

import json
import tempfile
import unittest
from pathlib import Path

from vault_core.asset_book import AssetBook
from vault_core.capabilities import ADMIN, OPERATOR, RoleTable, require
from vault_core.config import LedgerConfig, load_config
from vault_core.errors import (
    FeeTooHigh,
    InvalidIdentifier,
    MissingCapability,
    ReentrantCall,
    TransferFailed,
    ValidationError,
    ZeroAmount,
)
from vault_core.events import EventLog
from vault_core.guard import ReentrancyGuard
from vault_core.journal import Journal
from vault_core.routing import InMemoryTradeRouter, StaticVaultRegistry


class _Counter:
    def __init__(self) -> None:
        self.state = {"value": 0}

    def snapshot_state(self):
        return self.state

    def restore_state(self, state) -> None:
        self.state = state


class JournalTests(unittest.TestCase):
    def setUp(self) -> None:
        self.log = EventLog()
        self.journal = Journal(self.log)

    def test_commit_flushes_events_in_order(self) -> None:
        counter = _Counter()
        with self.journal.atomic(counter):
            counter.state["value"] = 1
            self.journal.emit("First", "counter", value=1)
            with self.journal.atomic(counter):
                self.journal.emit("Second", "counter", value=2)
            self.assertEqual(len(self.log), 0)

        self.assertEqual([event.name for event in self.log.records()], ["First", "Second"])
        self.assertEqual(self.log.records()[1].get("value"), 2)
        self.assertEqual(self.log.records()[1].sequence, 2)
        self.assertFalse(self.journal.active)

    def test_failure_restores_every_participant(self) -> None:
        first = _Counter()
        second = _Counter()
        with self.assertRaises(RuntimeError):
            with self.journal.atomic(first):
                first.state["value"] = 10
                self.journal.emit("Touched", "first")
                with self.journal.atomic(second):
                    second.state["value"] = 20
                    raise RuntimeError("boom")

        self.assertEqual(first.state, {"value": 0})
        self.assertEqual(second.state, {"value": 0})
        self.assertEqual(len(self.log), 0)
        self.assertFalse(self.journal.active)

    def test_emit_outside_atomic_section_fails(self) -> None:
        with self.assertRaises(RuntimeError):
            self.journal.emit("Orphan", "nobody")


class ReentrancyGuardTests(unittest.TestCase):
    def test_second_entry_is_rejected_and_lock_released(self) -> None:
        guard = ReentrancyGuard("test")
        with guard.hold():
            self.assertTrue(guard.locked)
            with self.assertRaises(ReentrantCall):
                with guard.hold():
                    pass
        self.assertFalse(guard.locked)

    def test_lock_released_on_error(self) -> None:
        guard = ReentrancyGuard("test")
        with self.assertRaises(ValueError):
            with guard.hold():
                raise ValueError("fail")
        self.assertFalse(guard.locked)


class AssetBookTests(unittest.TestCase):
    def setUp(self) -> None:
        self.log = EventLog()
        self.book = AssetBook(Journal(self.log))
        self.book.mint("alice", 1_000)

    def test_pull_requires_allowance(self) -> None:
        port = self.book.port_for("vault")
        with self.assertRaises(TransferFailed):
            port.pull("alice", 100)

        self.book.approve("alice", "vault", 150)
        port.pull("alice", 100)

        self.assertEqual(port.balance(), 100)
        self.assertEqual(self.book.balance_of("alice"), 900)
        self.assertEqual(self.book.allowance("alice", "vault"), 50)

    def test_failed_transfer_changes_nothing(self) -> None:
        self.book.approve("alice", "vault", 5_000)
        with self.assertRaises(TransferFailed):
            self.book.port_for("vault").pull("alice", 2_000)

        self.assertEqual(self.book.balance_of("alice"), 1_000)
        self.assertEqual(self.book.allowance("alice", "vault"), 5_000)

    def test_push_and_burn(self) -> None:
        self.book.port_for("alice").push("bob", 300)
        self.book.burn("bob", 100)
        self.assertEqual(self.book.balances(), {"alice": 700, "bob": 200})
        self.assertEqual(self.book.total_supply, 900)

    def test_invalid_amounts(self) -> None:
        for amount in (0, -5, True):
            with self.subTest(amount=amount):
                with self.assertRaises(ZeroAmount):
                    self.book.transfer("alice", "bob", amount)
        with self.assertRaises(InvalidIdentifier):
            self.book.port_for("")


class CapabilityTests(unittest.TestCase):
    def test_grant_and_revoke(self) -> None:
        roles = RoleTable()
        roles.grant("ops", OPERATOR)
        self.assertTrue(roles.has("ops", OPERATOR))
        self.assertFalse(roles.has("ops", ADMIN))
        require(roles, "ops", OPERATOR)

        roles.revoke("ops", OPERATOR)
        with self.assertRaises(MissingCapability):
            require(roles, "ops", OPERATOR)

    def test_unknown_capability_rejected(self) -> None:
        with self.assertRaises(InvalidIdentifier):
            RoleTable().grant("ops", "superuser")


class RoutingTests(unittest.TestCase):
    def test_unknown_target_fails(self) -> None:
        router = InMemoryTradeRouter()
        router.register("dex", lambda payload: payload == b"ok")
        self.assertTrue(router.call("dex", b"ok"))
        self.assertFalse(router.call("dex", b"nope"))
        self.assertFalse(router.call("missing", b"ok"))

    def test_registry_keeps_first_occurrence_order(self) -> None:
        registry = StaticVaultRegistry(["b", "a", "b"])
        self.assertEqual(registry.list_active_vaults(), ("b", "a"))


class ConfigTests(unittest.TestCase):
    def test_defaults(self) -> None:
        config = load_config()
        self.assertEqual(config.performance_fee_bp, 2_000)
        self.assertEqual(config.max_early_withdrawal_fee_bp, 1_000)

    def test_overrides_and_validation(self) -> None:
        with tempfile.TemporaryDirectory() as tempdir:
            path = Path(tempdir) / "config.json"
            path.write_text(json.dumps({"emergency_fee_bp": 250}))
            self.assertEqual(load_config(path), LedgerConfig(emergency_fee_bp=250))

            path.write_text(json.dumps({"unknown": 1}))
            with self.assertRaises(ValidationError):
                load_config(path)

            path.write_text(json.dumps({"early_withdrawal_fee_bp": 2_000}))
            with self.assertRaises(FeeTooHigh):
                load_config(path)


if __name__ == "__main__":
    unittest.main()
