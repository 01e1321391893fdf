"""Builds one fully wired in-memory vault system."""

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Union

from profit_claims.ledger import MultiVaultProfitClaimLedger, ProfitClaimLedger
from revenue_distributor.distributor import RevenueDistributor
from vault_core.asset_book import AssetBook
from vault_core.capabilities import ADMIN, EMERGENCY, OPERATOR, VAULT, RoleTable
from vault_core.config import LedgerConfig
from vault_core.context import LedgerContext, create_context
from vault_core.events import EventLog
from vault_core.routing import InMemoryTradeRouter, StaticVaultRegistry
from vault_ledger.ledger import VaultLedger
from vault_ledger.models import Strategy

from .simulator import simulated_venue

VAULT_ACCOUNT = "vault"
DISTRIBUTOR_ACCOUNT = "revenue-distributor"
CLAIMS_ACCOUNT = "profit-claims"
SIMULATED_TARGET = "simulated-venue"

ClaimLedger = Union[ProfitClaimLedger, MultiVaultProfitClaimLedger]


@dataclass
class VaultSystem:
    context: LedgerContext
    book: AssetBook
    roles: RoleTable
    router: InMemoryTradeRouter
    registry: StaticVaultRegistry
    vault: VaultLedger
    distributor: RevenueDistributor
    claims: ClaimLedger

    @property
    def events(self) -> EventLog:
        return self.context.event_log

    def snapshot(self) -> Dict[str, object]:
        return {
            "vault": self.vault.snapshot(),
            "revenue": {
                "total_revenue": self.distributor.total_revenue,
                "total_distributed": self.distributor.total_distributed,
                "allocated_bp": self.distributor.allocated_bp,
                "stakeholders": [item.to_dict() for item in self.distributor.stakeholders()],
            },
            "claims": {
                "total_claimable": self.claims.total_claimable,
                "lockup_period": self.claims.lockup_period,
                "early_withdrawal_fee_bp": self.claims.early_withdrawal_fee_bp,
            },
            "balances": self.book.balances(),
            "event_count": len(self.events),
        }


def build_system(
    config: Optional[LedgerConfig] = None,
    time_provider: Optional[Callable[[], int]] = None,
    multi_vault: bool = False,
    strategy: Optional[Strategy] = None,
    admin: str = "admin",
    operator: str = "operator",
    guardian: str = "guardian",
) -> VaultSystem:
    """Wire one in-memory system with every capability granted to the named principals.

    Trade profit credited to the claim ledger stays in the vault's balance, so
    the ``CLAIMS_ACCOUNT`` starts unfunded. Claims fail with ``TransferFailed``
    until the operator mints or transfers payout funds to that account.
    """

    roles = RoleTable()
    context = create_context(config=config, gate=roles, time_provider=time_provider)
    book = AssetBook(context.journal)
    router = InMemoryTradeRouter()
    registry = StaticVaultRegistry((VAULT_ACCOUNT,))

    distributor = RevenueDistributor(context, book.port_for(DISTRIBUTOR_ACCOUNT))
    claims: ClaimLedger
    if multi_vault:
        claims = MultiVaultProfitClaimLedger(
            context, book.port_for(CLAIMS_ACCOUNT), distributor, registry
        )
    else:
        claims = ProfitClaimLedger(
            context, book.port_for(CLAIMS_ACCOUNT), distributor, VAULT_ACCOUNT
        )

    router.register(SIMULATED_TARGET, simulated_venue(book, VAULT_ACCOUNT))
    vault = VaultLedger(
        context,
        book.port_for(VAULT_ACCOUNT),
        router,
        distributor,
        claims,
        strategy=strategy or Strategy(allowed_targets=frozenset({SIMULATED_TARGET})),
    )

    roles.grant(admin, ADMIN)
    roles.grant(operator, OPERATOR)
    roles.grant(guardian, EMERGENCY)
    roles.grant(VAULT_ACCOUNT, VAULT)

    return VaultSystem(
        context=context,
        book=book,
        roles=roles,
        router=router,
        registry=registry,
        vault=vault,
        distributor=distributor,
        claims=claims,
    )
