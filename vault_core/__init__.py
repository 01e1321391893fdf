from .asset_book import AssetBook, BookState, BoundTransferPort
from .capabilities import ADMIN, EMERGENCY, OPERATOR, VAULT, CapabilityGate, RoleTable, require
from .config import BASIS_POINTS, SECONDS_PER_DAY, SECONDS_PER_YEAR, LedgerConfig, load_config
from .context import LedgerContext, create_context
from .errors import (
    AuthorizationError,
    ExternalCallError,
    LedgerError,
    StatePreconditionError,
    ValidationError,
)
from .events import EventLog, LedgerEvent
from .guard import ReentrancyGuard
from .journal import Journal
from .ports import AssetTransferPort, ProfitSink, RevenueSink, TradeRouter, VaultRegistry
from .routing import InMemoryTradeRouter, StaticVaultRegistry

__all__ = [
    "ADMIN",
    "EMERGENCY",
    "OPERATOR",
    "VAULT",
    "BASIS_POINTS",
    "SECONDS_PER_DAY",
    "SECONDS_PER_YEAR",
    "AssetBook",
    "AssetTransferPort",
    "AuthorizationError",
    "BookState",
    "BoundTransferPort",
    "CapabilityGate",
    "EventLog",
    "ExternalCallError",
    "InMemoryTradeRouter",
    "Journal",
    "LedgerConfig",
    "LedgerContext",
    "LedgerError",
    "LedgerEvent",
    "ProfitSink",
    "ReentrancyGuard",
    "RevenueSink",
    "RoleTable",
    "StatePreconditionError",
    "StaticVaultRegistry",
    "TradeRouter",
    "ValidationError",
    "VaultRegistry",
    "create_context",
    "load_config",
    "require",
]
