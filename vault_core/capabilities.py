"""Capability names and the in-memory capability gate."""

from typing import Dict, Protocol, Set, Tuple

from .errors import InvalidIdentifier, MissingCapability

ADMIN = "admin"
OPERATOR = "operator"
EMERGENCY = "emergency"
VAULT = "vault"

KNOWN_CAPABILITIES: Tuple[str, ...] = (ADMIN, EMERGENCY, OPERATOR, VAULT)


class CapabilityGate(Protocol):
    def has(self, caller: str, capability: str) -> bool:
        ...


class RoleTable:
    """Grants named capabilities to principals. Administration is left to the owner."""

    def __init__(self) -> None:
        self._grants: Dict[str, Set[str]] = {}

    def grant(self, principal: str, capability: str) -> None:
        _validate(principal, capability)
        self._grants.setdefault(capability, set()).add(principal)

    def revoke(self, principal: str, capability: str) -> None:
        _validate(principal, capability)
        self._grants.get(capability, set()).discard(principal)

    def has(self, caller: str, capability: str) -> bool:
        return caller in self._grants.get(capability, set())

    def holders(self, capability: str) -> Tuple[str, ...]:
        return tuple(sorted(self._grants.get(capability, set())))


def require(gate: CapabilityGate, caller: str, capability: str) -> None:
    if not gate.has(caller, capability):
        raise MissingCapability(f"{caller!r} lacks the {capability!r} capability.")


def _validate(principal: str, capability: str) -> None:
    if not principal:
        raise InvalidIdentifier("Principal must be non-empty.")
    if capability not in KNOWN_CAPABILITIES:
        raise InvalidIdentifier(f"Unknown capability: {capability}")
