"""HTTP contract tests for the ledger web shell."""

import unittest

try:
    from fastapi.testclient import TestClient
except ImportError:  # pragma: no cover - optional dependency
    TestClient = None

try:
    from web import app as web_app
except ImportError:  # pragma: no cover - optional dependency
    web_app = None

from vault_system.assembly import VAULT_ACCOUNT, build_system

START = 1_700_000_000


@unittest.skipIf(TestClient is None or web_app is None, "FastAPI not available")
class LedgerApiTests(unittest.TestCase):
    def setUp(self) -> None:
        self.now = START
        web_app._reset_state(build_system(time_provider=lambda: self.now))
        self.client = TestClient(web_app.app)

    def _deposit(self, user: str, amount: int) -> None:
        response = self.client.post("/api/book/mint", json={"account": user, "amount": amount})
        self.assertEqual(response.status_code, 200)
        response = self.client.post(
            "/api/book/approve",
            json={"owner": user, "spender": VAULT_ACCOUNT, "amount": amount},
        )
        self.assertEqual(response.json()["allowance"], amount)
        response = self.client.post("/api/vault/deposit", json={"caller": user, "amount": amount})
        self.assertEqual(response.status_code, 200)

    def test_deposit_and_trade_flow(self) -> None:
        self._deposit("alice", 1_000)
        self._deposit("bob", 500)

        response = self.client.post("/api/vault/trade", json={"caller": "operator", "delta": 100})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"profit": 100, "total_assets": 1_580})

        vault = self.client.get("/api/vault").json()
        self.assertEqual(vault["total_shares"], 1_500)
        self.assertEqual(vault["metrics"]["total_fees"], 20)
        self.assertEqual(self.client.get("/api/revenue").json()["total_revenue"], 20)
        self.assertEqual(self.client.get("/api/claims/alice").json()["claimable"], 54)

        position = self.client.get("/api/vault/positions/bob").json()
        self.assertEqual(position["shares"], 500)
        self.assertEqual(position["asset_value"], 526)

    def test_authorization_errors_map_to_403(self) -> None:
        self._deposit("alice", 1_000)
        response = self.client.post("/api/vault/trade", json={"caller": "alice", "delta": 10})

        self.assertEqual(response.status_code, 403)
        body = response.json()
        self.assertEqual(body["type"], "MissingCapability")
        self.assertEqual(body["category"], "authorization")

    def test_ledger_errors_map_to_400(self) -> None:
        response = self.client.post("/api/vault/deposit", json={"caller": "alice", "amount": 0})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["type"], "ZeroAmount")

        response = self.client.post("/api/vault/withdraw", json={"caller": "alice", "shares": 5})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["category"], "state")

    def test_revenue_stakeholder_flow(self) -> None:
        self.client.post("/api/book/mint", json={"account": "payer", "amount": 1_000})
        self.client.post(
            "/api/book/approve",
            json={"owner": "payer", "spender": "revenue-distributor", "amount": 1_000},
        )
        response = self.client.post(
            "/api/revenue/stakeholders",
            json={
                "caller": "admin",
                "stakeholder_id": "treasury",
                "payout_target": "treasury-wallet",
                "shares_bp": 2_500,
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["shares_bp"], 2_500)

        self.client.post(
            "/api/revenue/receive", json={"caller": "payer", "amount": 1_000, "source": "manual"}
        )
        response = self.client.post(
            "/api/revenue/distribute", json={"caller": "anyone", "stakeholder_id": "treasury"}
        )
        self.assertEqual(response.json(), {"amount": 250})
        self.assertEqual(self.client.get("/api/book").json()["balances"]["treasury-wallet"], 250)

    def test_stakeholder_admin_endpoints(self) -> None:
        self.client.post(
            "/api/revenue/stakeholders",
            json={
                "caller": "admin",
                "stakeholder_id": "team",
                "payout_target": "team-wallet",
                "shares_bp": 4_000,
            },
        )
        response = self.client.post(
            "/api/revenue/stakeholders/update",
            json={
                "caller": "admin",
                "stakeholder_id": "team",
                "payout_target": "team-multisig",
                "shares_bp": 6_000,
            },
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["payout_target"], "team-multisig")

        response = self.client.post(
            "/api/revenue/stakeholders/status",
            json={"caller": "admin", "stakeholder_id": "team", "active": False},
        )
        self.assertFalse(response.json()["active"])
        self.assertEqual(self.client.get("/api/revenue").json()["allocated_bp"], 0)

        response = self.client.post(
            "/api/revenue/stakeholders/status",
            json={"caller": "alice", "stakeholder_id": "team", "active": True},
        )
        self.assertEqual(response.status_code, 403)

    def test_claim_settings_endpoints(self) -> None:
        response = self.client.post("/api/claims/lockup", json={"caller": "admin", "seconds": 60})
        self.assertEqual(response.json(), {"lockup_period": 60})

        response = self.client.post(
            "/api/claims/early-withdrawal-fee", json={"caller": "admin", "fee_bp": 250}
        )
        self.assertEqual(response.json(), {"early_withdrawal_fee_bp": 250})
        self.assertEqual(self.client.get("/api/claims/alice").json()["lockup_period"], 60)

        response = self.client.post(
            "/api/claims/early-withdrawal-fee", json={"caller": "admin", "fee_bp": 1_001}
        )
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["type"], "FeeTooHigh")

    def test_emergency_endpoints(self) -> None:
        self._deposit("alice", 1_000)
        response = self.client.post("/api/vault/emergency", json={"caller": "guardian"})
        self.assertEqual(response.json(), {"paused": True, "emergency": True})

        response = self.client.post("/api/vault/emergency-withdraw", json={"caller": "alice"})
        self.assertEqual(response.json(), {"net": 950})

        response = self.client.post("/api/vault/emergency/resolve", json={"caller": "guardian"})
        self.assertEqual(response.json(), {"paused": False, "emergency": False})

    def test_reinvest_rejects_foreign_vault(self) -> None:
        response = self.client.post(
            "/api/claims/reinvest", json={"caller": "alice", "amount": 1, "vault": "other"}
        )
        self.assertEqual(response.status_code, 400)

    def test_events_filter(self) -> None:
        self._deposit("alice", 100)
        self.client.post("/api/vault/pause", json={"caller": "admin"})

        events = self.client.get("/api/events").json()["events"]
        self.assertEqual([event["name"] for event in events], ["Deposit", "Paused"])
        paused = self.client.get("/api/events", params={"name": "Paused"}).json()["events"]
        self.assertEqual(paused[0]["fields"], {"by": "admin"})


if __name__ == "__main__":
    unittest.main()
