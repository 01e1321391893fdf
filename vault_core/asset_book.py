"""In-memory fungible asset with balances and allowances."""

import logging
from dataclasses import dataclass, field
from typing import Dict, Tuple

from .errors import InvalidIdentifier, TransferFailed, ZeroAmount
from .journal import Journal

logger = logging.getLogger(__name__)


@dataclass
class BookState:
    balances: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[Tuple[str, str], int] = field(default_factory=dict)
    total_supply: int = 0


class AssetBook:
    """Single-asset balance sheet. Every movement is journaled."""

    def __init__(self, journal: Journal, symbol: str = "USDC") -> None:
        self._journal = journal
        self.symbol = symbol
        self._state = BookState()

    def snapshot_state(self) -> BookState:
        return self._state

    def restore_state(self, state: BookState) -> None:
        self._state = state

    def port_for(self, account: str) -> "BoundTransferPort":
        _require_account(account)
        return BoundTransferPort(self, account)

    def balance_of(self, account: str) -> int:
        return self._state.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._state.allowances.get((owner, spender), 0)

    def balances(self) -> Dict[str, int]:
        return {account: amount for account, amount in self._state.balances.items() if amount}

    @property
    def total_supply(self) -> int:
        return self._state.total_supply

    def mint(self, account: str, amount: int) -> None:
        _require_account(account)
        _require_positive(amount)
        with self._journal.atomic(self):
            self._state.balances[account] = self.balance_of(account) + amount
            self._state.total_supply += amount

    def burn(self, account: str, amount: int) -> None:
        _require_account(account)
        _require_positive(amount)
        with self._journal.atomic(self):
            self._debit(account, amount)
            self._state.total_supply -= amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        _require_account(recipient)
        _require_positive(amount)
        with self._journal.atomic(self):
            self._debit(sender, amount)
            self._state.balances[recipient] = self.balance_of(recipient) + amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        _require_account(owner)
        _require_account(spender)
        if amount < 0:
            raise ZeroAmount("Allowance must be non-negative.")
        with self._journal.atomic(self):
            self._state.allowances[(owner, spender)] = amount

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        _require_positive(amount)
        with self._journal.atomic(self):
            allowed = self.allowance(owner, spender)
            if allowed < amount:
                raise TransferFailed(
                    f"Allowance {allowed} from {owner} to {spender} below {amount}."
                )
            self._state.allowances[(owner, spender)] = allowed - amount
            self.transfer(owner, recipient, amount)

    def _debit(self, account: str, amount: int) -> None:
        available = self.balance_of(account)
        if available < amount:
            raise TransferFailed(f"Balance {available} of {account} below {amount}.")
        self._state.balances[account] = available - amount


class BoundTransferPort:
    """AssetTransferPort view of the book for one owning account."""

    def __init__(self, book: AssetBook, account: str) -> None:
        self._book = book
        self._account = account

    @property
    def account(self) -> str:
        return self._account

    def pull(self, source: str, amount: int) -> None:
        self._book.transfer_from(self._account, source, self._account, amount)

    def push(self, recipient: str, amount: int) -> None:
        self._book.transfer(self._account, recipient, amount)

    def approve(self, spender: str, amount: int) -> None:
        self._book.approve(self._account, spender, amount)

    def allowance(self, owner: str, spender: str) -> int:
        return self._book.allowance(owner, spender)

    def balance(self) -> int:
        return self._book.balance_of(self._account)


def _require_account(account: str) -> None:
    if not account:
        raise InvalidIdentifier("Account identifier must be non-empty.")


def _require_positive(amount: int) -> None:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ZeroAmount("Transfer amount must be a positive integer.")
