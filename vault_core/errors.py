"""Error taxonomy shared by every ledger component."""


class LedgerError(Exception):
    """Base class for every ledger failure. The enclosing call is rolled back."""

    category = "ledger"


class ValidationError(LedgerError, ValueError):
    """Caller supplied an invalid amount, identifier or parameter."""

    category = "validation"


class AuthorizationError(LedgerError, PermissionError):
    """Caller lacks the capability required by the entry point."""

    category = "authorization"


class StatePreconditionError(LedgerError, RuntimeError):
    """Ledger state does not permit the operation right now."""

    category = "state"


class ExternalCallError(LedgerError, RuntimeError):
    """A transfer or opaque trade call failed or produced an unacceptable result."""

    category = "external"


class ZeroAmount(ValidationError):
    pass


class ZeroShares(ValidationError):
    pass


class InvalidIdentifier(ValidationError):
    pass


class FeeTooHigh(ValidationError):
    pass


class InvalidStrategy(ValidationError):
    pass


class InvalidAllocation(ValidationError):
    pass


class MissingCapability(AuthorizationError):
    pass


class VaultPaused(StatePreconditionError):
    pass


class VaultNotPaused(StatePreconditionError):
    pass


class EmergencyNotActive(StatePreconditionError):
    pass


class EmergencyActive(StatePreconditionError):
    pass


class RebalanceTooSoon(StatePreconditionError):
    pass


class ProtocolNotAllowed(StatePreconditionError):
    pass


class StrategyInactive(StatePreconditionError):
    pass


class InsufficientShares(StatePreconditionError):
    pass


class InsufficientClaimable(StatePreconditionError):
    pass


class NothingToClaim(StatePreconditionError):
    pass


class StakeholderExists(StatePreconditionError):
    pass


class StakeholderNotFound(StatePreconditionError):
    pass


class StakeholderInactive(StatePreconditionError):
    pass


class AllocationExceeded(StatePreconditionError):
    pass


class AllocationBelowClaimed(StatePreconditionError):
    pass


class ReentrantCall(StatePreconditionError):
    pass


class NoShareholders(StatePreconditionError):
    pass


class TransferFailed(ExternalCallError):
    pass


class TradeCallFailed(ExternalCallError):
    pass


class TradeLoss(ExternalCallError):
    pass


class DrawdownExceeded(ExternalCallError):
    pass
