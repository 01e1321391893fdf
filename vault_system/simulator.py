"""Simulated trade venue that settles by minting or burning vault balance."""

import json
from typing import Callable, Dict

from vault_core.asset_book import AssetBook


def encode_trade(delta: int, fail: bool = False) -> bytes:
    return json.dumps({"delta": delta, "fail": fail}, sort_keys=True).encode("utf-8")


def simulated_venue(book: AssetBook, account: str) -> Callable[[bytes], bool]:
    """Return a trade handler that moves ``account``'s balance by the payload delta."""

    def handle(payload: bytes) -> bool:
        order = _decode(payload)
        if order.get("fail"):
            return False
        delta = int(order.get("delta", 0))
        if delta > 0:
            book.mint(account, delta)
        elif delta < 0:
            book.burn(account, -delta)
        return True

    return handle


def _decode(payload: bytes) -> Dict[str, object]:
    data = json.loads(payload.decode("utf-8") or "{}")
    if not isinstance(data, dict):
        raise ValueError("Trade payload must be a JSON object.")
    return data
