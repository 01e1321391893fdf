"""In-memory trade router and vault registry."""

from typing import Callable, Dict, Iterable, Tuple

from .errors import InvalidIdentifier

TradeHandler = Callable[[bytes], bool]


class InMemoryTradeRouter:
    """Dispatches opaque payloads to registered handlers."""

    def __init__(self) -> None:
        self._handlers: Dict[str, TradeHandler] = {}

    def register(self, target: str, handler: TradeHandler) -> None:
        if not target:
            raise InvalidIdentifier("Trade target must be non-empty.")
        self._handlers[target] = handler

    def targets(self) -> Tuple[str, ...]:
        return tuple(self._handlers)

    def call(self, target: str, payload: bytes) -> bool:
        handler = self._handlers.get(target)
        if handler is None:
            return False
        return bool(handler(payload))


class StaticVaultRegistry:
    """Authoritative, ordered list of active vaults."""

    def __init__(self, vaults: Iterable[str] = ()) -> None:
        self._vaults: Tuple[str, ...] = ()
        self.replace(vaults)

    def replace(self, vaults: Iterable[str]) -> None:
        ordered = []
        for vault in vaults:
            if not vault:
                raise InvalidIdentifier("Vault identifier must be non-empty.")
            if vault not in ordered:
                ordered.append(vault)
        self._vaults = tuple(ordered)

    def list_active_vaults(self) -> Tuple[str, ...]:
        return self._vaults
