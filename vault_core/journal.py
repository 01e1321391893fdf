"""All-or-nothing commit across every component touched by one outer call."""

import copy
import logging
from contextlib import contextmanager
from typing import Dict, Iterator, List, Mapping, Protocol, Tuple

from .events import EventLog

logger = logging.getLogger(__name__)


class Participant(Protocol):
    """Component whose mutable state can be captured and put back."""

    def snapshot_state(self) -> object:
        ...

    def restore_state(self, state: object) -> None:
        ...


class Journal:
    """Tracks the outermost mutating call and rolls back everything it touched.

    Nested calls (a vault forwarding a fee to the distributor, a ledger moving
    tokens through the asset book) join the transaction already in progress.
    Participants are snapshotted the first time they join. Events are held
    back until the outermost call returns and are dropped if it raises.
    """

    def __init__(self, event_log: EventLog) -> None:
        self._event_log = event_log
        self._depth = 0
        self._snapshots: Dict[int, Tuple[Participant, object]] = {}
        self._pending: List[Tuple[str, str, Mapping[str, object]]] = []

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    @property
    def active(self) -> bool:
        return self._depth > 0

    @contextmanager
    def atomic(self, participant: Participant) -> Iterator[None]:
        key = id(participant)
        if key not in self._snapshots:
            self._snapshots[key] = (participant, copy.deepcopy(participant.snapshot_state()))
        self._depth += 1
        try:
            yield
        except BaseException:
            self._depth -= 1
            if self._depth == 0:
                self._rollback()
            raise
        else:
            self._depth -= 1
            if self._depth == 0:
                self._commit()

    def emit(self, name: str, emitter: str, **fields: object) -> None:
        if not self.active:
            raise RuntimeError("Events may only be emitted inside an atomic section.")
        self._pending.append((name, emitter, dict(fields)))

    def _commit(self) -> None:
        for name, emitter, fields in self._pending:
            self._event_log.append(name, emitter, fields)
        self._reset()

    def _rollback(self) -> None:
        for participant, state in reversed(list(self._snapshots.values())):
            participant.restore_state(state)
        logger.warning(
            "Rolled back %d participant(s); dropped %d pending event(s).",
            len(self._snapshots),
            len(self._pending),
        )
        self._reset()

    def _reset(self) -> None:
        self._snapshots = {}
        self._pending = []
