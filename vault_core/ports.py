"""Boundaries the ledgers talk through."""

from typing import Protocol, Tuple


class AssetTransferPort(Protocol):
    """All-or-nothing transfers on behalf of one bound account."""

    @property
    def account(self) -> str:
        ...

    def pull(self, source: str, amount: int) -> None:
        ...

    def push(self, recipient: str, amount: int) -> None:
        ...

    def approve(self, spender: str, amount: int) -> None:
        ...

    def allowance(self, owner: str, spender: str) -> int:
        ...

    def balance(self) -> int:
        ...


class TradeRouter(Protocol):
    """Opaque trade execution. Only the balance delta it leaves behind is observed."""

    def call(self, target: str, payload: bytes) -> bool:
        ...


class VaultRegistry(Protocol):
    def list_active_vaults(self) -> Tuple[str, ...]:
        ...


class RevenueSink(Protocol):
    account: str

    def receive_revenue(self, caller: str, amount: int, source: str) -> None:
        ...


class ProfitSink(Protocol):
    def distribute_profits(self, caller: str, user: str, amount: int) -> None:
        ...
