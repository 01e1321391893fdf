"""Local-first FastAPI shell over the vault, revenue and profit-claim ledgers."""

from __future__ import annotations

from typing import List, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from profit_claims.ledger import MultiVaultProfitClaimLedger
from vault_core.errors import AuthorizationError, LedgerError
from vault_ledger.ledger import VaultLedger
from vault_system.assembly import SIMULATED_TARGET, VaultSystem, build_system
from vault_system.simulator import encode_trade

app = FastAPI(title="Vault Ledger", description="Local-first ledger shell")

_SYSTEM: VaultSystem = build_system()


class CallerRequest(BaseModel):
    caller: str


class AmountRequest(BaseModel):
    caller: str
    amount: int


class WithdrawRequest(BaseModel):
    caller: str
    shares: int


class TradeRequest(BaseModel):
    caller: str
    delta: int
    target: str = SIMULATED_TARGET
    fail: bool = False


class StrategyRequest(BaseModel):
    caller: str
    max_drawdown_bp: int
    target_return_bp: int
    rebalance_interval_seconds: int
    allowed_targets: List[str]
    active: bool = True


class RevenueRequest(BaseModel):
    caller: str
    amount: int
    source: str = "manual"


class StakeholderRequest(BaseModel):
    caller: str
    stakeholder_id: str
    payout_target: str
    shares_bp: int


class StakeholderStatusRequest(BaseModel):
    caller: str
    stakeholder_id: str
    active: bool


class LockupRequest(BaseModel):
    caller: str
    seconds: int


class EarlyWithdrawalFeeRequest(BaseModel):
    caller: str
    fee_bp: int


class DistributeRequest(BaseModel):
    caller: str
    stakeholder_id: str


class ReinvestRequest(BaseModel):
    caller: str
    amount: int
    vault: Optional[str] = None


class MintRequest(BaseModel):
    account: str
    amount: int


class ApproveRequest(BaseModel):
    owner: str
    spender: str
    amount: int


@app.middleware("http")
async def _local_only(request: Request, call_next):
    client = request.client
    if client is not None:
        host = client.host
        if host not in {"127.0.0.1", "::1", "testclient"}:
            return JSONResponse({"error": "Remote access disabled."}, status_code=403)
    return await call_next(request)


async def _handle_ledger_error(request: Request, exc: Exception):
    status_code = 403 if isinstance(exc, AuthorizationError) else 400
    category = getattr(exc, "category", "validation")
    return JSONResponse(
        {"error": str(exc), "type": type(exc).__name__, "category": category},
        status_code=status_code,
    )


for _exc_class in (LedgerError, ValueError):
    app.add_exception_handler(_exc_class, _handle_ledger_error)


def _reset_state(system: Optional[VaultSystem] = None) -> VaultSystem:
    global _SYSTEM
    _SYSTEM = system or build_system()
    return _SYSTEM


def _vault() -> VaultLedger:
    return _SYSTEM.vault


@app.get("/api/book")
async def book_state():
    return {"symbol": _SYSTEM.book.symbol, "balances": _SYSTEM.book.balances()}


@app.post("/api/book/mint")
async def book_mint(payload: MintRequest):
    _SYSTEM.book.mint(payload.account, payload.amount)
    return {"balance": _SYSTEM.book.balance_of(payload.account)}


@app.post("/api/book/approve")
async def book_approve(payload: ApproveRequest):
    _SYSTEM.book.approve(payload.owner, payload.spender, payload.amount)
    return {"allowance": _SYSTEM.book.allowance(payload.owner, payload.spender)}


@app.get("/api/vault")
async def vault_state():
    return _SYSTEM.snapshot()["vault"]


@app.get("/api/vault/positions/{user}")
async def vault_position(user: str):
    vault = _vault()
    shares = vault.shares_of(user)
    return {
        "user": user,
        "shares": shares,
        "asset_value": vault.get_asset_value_of_shares(shares),
        "position": vault.position_of(user).to_dict(),
    }


@app.post("/api/vault/deposit")
async def vault_deposit(payload: AmountRequest):
    shares = _vault().deposit(payload.caller, payload.amount)
    return {"shares": shares}


@app.post("/api/vault/withdraw")
async def vault_withdraw(payload: WithdrawRequest):
    assets = _vault().withdraw(payload.caller, payload.shares)
    return {"assets": assets}


@app.post("/api/vault/emergency-withdraw")
async def vault_emergency_withdraw(payload: CallerRequest):
    net = _vault().emergency_withdraw(payload.caller)
    return {"net": net}


@app.post("/api/vault/trade")
async def vault_trade(payload: TradeRequest):
    profit = _vault().execute_trade(
        payload.caller, payload.target, encode_trade(payload.delta, payload.fail)
    )
    return {"profit": profit, "total_assets": _vault().total_assets}


@app.post("/api/vault/strategy")
async def vault_strategy(payload: StrategyRequest):
    strategy = _vault().update_strategy(
        payload.caller,
        max_drawdown_bp=payload.max_drawdown_bp,
        target_return_bp=payload.target_return_bp,
        rebalance_interval_seconds=payload.rebalance_interval_seconds,
        allowed_targets=payload.allowed_targets,
        active=payload.active,
    )
    return strategy.to_dict()


@app.post("/api/vault/pause")
async def vault_pause(payload: CallerRequest):
    _vault().pause(payload.caller)
    return {"paused": _vault().paused}


@app.post("/api/vault/unpause")
async def vault_unpause(payload: CallerRequest):
    _vault().unpause(payload.caller)
    return {"paused": _vault().paused}


@app.post("/api/vault/emergency")
async def vault_emergency(payload: CallerRequest):
    _vault().trigger_emergency(payload.caller)
    return {"paused": _vault().paused, "emergency": _vault().metrics.emergency}


@app.post("/api/vault/emergency/resolve")
async def vault_emergency_resolve(payload: CallerRequest):
    _vault().resolve_emergency(payload.caller)
    return {"paused": _vault().paused, "emergency": _vault().metrics.emergency}


@app.get("/api/revenue")
async def revenue_state():
    return _SYSTEM.snapshot()["revenue"]


@app.post("/api/revenue/receive")
async def revenue_receive(payload: RevenueRequest):
    _SYSTEM.distributor.receive_revenue(payload.caller, payload.amount, payload.source)
    return {"total_revenue": _SYSTEM.distributor.total_revenue}


@app.post("/api/revenue/stakeholders")
async def revenue_add_stakeholder(payload: StakeholderRequest):
    _SYSTEM.distributor.add_stakeholder(
        payload.caller, payload.stakeholder_id, payload.payout_target, payload.shares_bp
    )
    return _SYSTEM.distributor.stakeholder(payload.stakeholder_id).to_dict()


@app.post("/api/revenue/stakeholders/update")
async def revenue_update_stakeholder(payload: StakeholderRequest):
    _SYSTEM.distributor.update_stakeholder(
        payload.caller, payload.stakeholder_id, payload.payout_target, payload.shares_bp
    )
    return _SYSTEM.distributor.stakeholder(payload.stakeholder_id).to_dict()


@app.post("/api/revenue/stakeholders/status")
async def revenue_stakeholder_status(payload: StakeholderStatusRequest):
    _SYSTEM.distributor.set_stakeholder_status(
        payload.caller, payload.stakeholder_id, payload.active
    )
    return _SYSTEM.distributor.stakeholder(payload.stakeholder_id).to_dict()


@app.post("/api/revenue/distribute")
async def revenue_distribute(payload: DistributeRequest):
    amount = _SYSTEM.distributor.distribute(payload.caller, payload.stakeholder_id)
    return {"amount": amount}


@app.get("/api/claims/{user}")
async def claims_state(user: str):
    return {
        "user": user,
        "claimable": _SYSTEM.claims.claimable_of(user),
        "lockup_period": _SYSTEM.claims.lockup_period,
        "early_withdrawal_fee_bp": _SYSTEM.claims.early_withdrawal_fee_bp,
    }


@app.post("/api/claims/claim")
async def claims_claim(payload: AmountRequest):
    net = _SYSTEM.claims.claim(payload.caller, payload.amount)
    return {"net": net, "fee": payload.amount - net}


@app.post("/api/claims/reinvest")
async def claims_reinvest(payload: ReinvestRequest):
    claims = _SYSTEM.claims
    if isinstance(claims, MultiVaultProfitClaimLedger):
        if payload.vault is None:
            raise HTTPException(status_code=400, detail="Vault is required for multi-vault claims.")
        claims.reinvest(payload.caller, payload.vault, payload.amount)
    else:
        if payload.vault not in (None, claims.vault):
            raise HTTPException(status_code=400, detail="Claims are bound to a single vault.")
        claims.reinvest(payload.caller, payload.amount)
    return {"claimable": _SYSTEM.claims.claimable_of(payload.caller)}


@app.post("/api/claims/lockup")
async def claims_lockup(payload: LockupRequest):
    _SYSTEM.claims.set_lockup_period(payload.caller, payload.seconds)
    return {"lockup_period": _SYSTEM.claims.lockup_period}


@app.post("/api/claims/early-withdrawal-fee")
async def claims_early_withdrawal_fee(payload: EarlyWithdrawalFeeRequest):
    _SYSTEM.claims.set_early_withdrawal_fee(payload.caller, payload.fee_bp)
    return {"early_withdrawal_fee_bp": _SYSTEM.claims.early_withdrawal_fee_bp}


@app.get("/api/events")
async def events(name: Optional[str] = None):
    return {"events": [event.to_dict() for event in _SYSTEM.events.records(name)]}

