"""Shared collaborators handed to every ledger instance."""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .capabilities import CapabilityGate, RoleTable
from .config import LedgerConfig
from .events import EventLog
from .journal import Journal


def _epoch_seconds() -> int:
    return int(time.time())


@dataclass
class LedgerContext:
    journal: Journal
    gate: CapabilityGate
    config: LedgerConfig = field(default_factory=LedgerConfig)
    time_provider: Callable[[], int] = _epoch_seconds

    @property
    def event_log(self) -> EventLog:
        return self.journal.event_log

    def now(self) -> int:
        return int(self.time_provider())


def create_context(
    config: Optional[LedgerConfig] = None,
    gate: Optional[CapabilityGate] = None,
    time_provider: Optional[Callable[[], int]] = None,
) -> LedgerContext:
    return LedgerContext(
        journal=Journal(EventLog()),
        gate=gate if gate is not None else RoleTable(),
        config=config or LedgerConfig(),
        time_provider=time_provider or _epoch_seconds,
    )
