"""Unit tests for the stakeholder revenue split."""

import unittest

from revenue_distributor.distributor import RevenueDistributor
from vault_core.asset_book import AssetBook
from vault_core.capabilities import ADMIN, RoleTable
from vault_core.context import create_context
from vault_core.errors import (
    AllocationBelowClaimed,
    AllocationExceeded,
    InvalidAllocation,
    MissingCapability,
    NothingToClaim,
    StakeholderExists,
    StakeholderInactive,
    StakeholderNotFound,
    TransferFailed,
    ZeroAmount,
)


class RevenueDistributorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.roles = RoleTable()
        self.roles.grant("admin", ADMIN)
        self.context = create_context(gate=self.roles, time_provider=lambda: 1_700_000_000)
        self.book = AssetBook(self.context.journal)
        self.distributor = RevenueDistributor(self.context, self.book.port_for("distributor"))
        self.book.mint("payer", 10_000)
        self.book.approve("payer", "distributor", 10_000)

    def _events(self, name=None):
        return self.context.event_log.records(name)

    def test_receive_revenue_pulls_funds(self) -> None:
        self.distributor.receive_revenue("payer", 1_000, "performance_fee")

        self.assertEqual(self.distributor.total_revenue, 1_000)
        self.assertEqual(self.book.balance_of("distributor"), 1_000)
        self.assertEqual(self.book.balance_of("payer"), 9_000)
        event = self._events("RevenueReceived")[0]
        self.assertEqual(event.get("amount"), 1_000)
        self.assertEqual(event.get("source"), "performance_fee")

    def test_receive_revenue_rejects_zero(self) -> None:
        with self.assertRaises(ZeroAmount):
            self.distributor.receive_revenue("payer", 0, "manual")

    def test_receive_revenue_without_allowance_rolls_back(self) -> None:
        self.book.mint("stranger", 500)
        with self.assertRaises(TransferFailed):
            self.distributor.receive_revenue("stranger", 500, "manual")

        self.assertEqual(self.distributor.total_revenue, 0)
        self.assertEqual(len(self._events()), 0)

    def test_distribute_pays_lifetime_entitlement(self) -> None:
        self.distributor.add_stakeholder("admin", "treasury", "treasury-wallet", 6_000)
        self.distributor.add_stakeholder("admin", "team", "team-wallet", 3_000)
        self.distributor.receive_revenue("payer", 1_000, "manual")

        self.assertEqual(self.distributor.distribute("anyone", "treasury"), 600)
        self.assertEqual(self.book.balance_of("treasury-wallet"), 600)
        with self.assertRaises(NothingToClaim):
            self.distributor.distribute("anyone", "treasury")

        self.distributor.receive_revenue("payer", 500, "manual")
        self.assertEqual(self.distributor.pending("treasury"), 300)
        self.assertEqual(self.distributor.distribute("anyone", "treasury"), 300)
        self.assertEqual(self.distributor.distribute("anyone", "team"), 450)
        self.assertEqual(self.distributor.total_distributed, 1_350)
        self.assertEqual(self.distributor.stakeholder("treasury").claimed, 900)

    def test_claimed_never_exceeds_entitlement(self) -> None:
        self.distributor.add_stakeholder("admin", "a", "a-wallet", 3_333)
        for amount in (7, 13, 101, 999):
            self.distributor.receive_revenue("payer", amount, "manual")
            try:
                self.distributor.distribute("a", "a")
            except NothingToClaim:
                pass
            holder = self.distributor.stakeholder("a")
            self.assertLessEqual(
                holder.claimed, self.distributor.total_revenue * holder.shares_bp // 10_000
            )

    def test_allocation_cap(self) -> None:
        self.distributor.add_stakeholder("admin", "a", "a-wallet", 6_000)
        with self.assertRaises(AllocationExceeded):
            self.distributor.add_stakeholder("admin", "b", "b-wallet", 5_000)

        self.distributor.add_stakeholder("admin", "b", "b-wallet", 4_000)
        self.assertEqual(self.distributor.allocated_bp, 10_000)
        with self.assertRaises(AllocationExceeded):
            self.distributor.update_stakeholder("admin", "a", "a-wallet", 6_001)

        self.distributor.update_stakeholder("admin", "a", "a-wallet", 5_000)
        self.assertEqual(self.distributor.allocated_bp, 9_000)

    def test_status_changes_rebase_allocation(self) -> None:
        self.distributor.add_stakeholder("admin", "a", "a-wallet", 6_000)
        self.distributor.set_stakeholder_status("admin", "a", False)
        self.assertEqual(self.distributor.allocated_bp, 0)

        self.distributor.add_stakeholder("admin", "b", "b-wallet", 5_000)
        with self.assertRaises(AllocationExceeded):
            self.distributor.set_stakeholder_status("admin", "a", True)
        self.assertFalse(self.distributor.stakeholder("a").active)

        self.distributor.receive_revenue("payer", 100, "manual")
        with self.assertRaises(StakeholderInactive):
            self.distributor.distribute("a", "a")

    def test_share_reduction_below_claimed_rejected(self) -> None:
        self.distributor.add_stakeholder("admin", "a", "a-wallet", 5_000)
        self.distributor.receive_revenue("payer", 1_000, "manual")
        self.distributor.distribute("a", "a")

        with self.assertRaises(AllocationBelowClaimed):
            self.distributor.update_stakeholder("admin", "a", "a-wallet", 4_000)
        self.assertEqual(self.distributor.stakeholder("a").shares_bp, 5_000)

    def test_admin_validation(self) -> None:
        with self.assertRaises(MissingCapability):
            self.distributor.add_stakeholder("intruder", "a", "a-wallet", 1_000)
        with self.assertRaises(InvalidAllocation):
            self.distributor.add_stakeholder("admin", "a", "a-wallet", 0)
        self.distributor.add_stakeholder("admin", "a", "a-wallet", 1_000)
        with self.assertRaises(StakeholderExists):
            self.distributor.add_stakeholder("admin", "a", "a-wallet", 1_000)
        with self.assertRaises(StakeholderNotFound):
            self.distributor.update_stakeholder("admin", "missing", "x", 1_000)

    def test_failed_payout_leaves_no_trace(self) -> None:
        self.distributor.add_stakeholder("admin", "a", "a-wallet", 10_000)
        self.distributor.receive_revenue("payer", 1_000, "manual")
        self.distributor.receive_revenue("payer", 1, "manual")
        self.book.port_for("distributor").push("elsewhere", 1_001)
        events_before = self._events()

        with self.assertRaises(TransferFailed):
            self.distributor.distribute("a", "a")

        self.assertEqual(self.distributor.stakeholder("a").claimed, 0)
        self.assertEqual(self.distributor.total_distributed, 0)
        self.assertEqual(self._events(), events_before)


if __name__ == "__main__":
    unittest.main()
