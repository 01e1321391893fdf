"""Append-only audit trail consumed by external observers."""

from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional, Tuple


@dataclass(frozen=True)
class LedgerEvent:
    """One structured record emitted by a successful mutating call."""

    sequence: int
    name: str
    emitter: str
    fields: Tuple[Tuple[str, object], ...]

    def get(self, key: str, default: object = None) -> object:
        for name, value in self.fields:
            if name == key:
                return value
        return default

    def to_dict(self) -> Dict[str, object]:
        return {
            "sequence": self.sequence,
            "name": self.name,
            "emitter": self.emitter,
            "fields": dict(self.fields),
        }


class EventLog:
    def __init__(self) -> None:
        self._records: List[LedgerEvent] = []

    def append(self, name: str, emitter: str, fields: Mapping[str, object]) -> LedgerEvent:
        event = LedgerEvent(
            sequence=len(self._records) + 1,
            name=name,
            emitter=emitter,
            fields=tuple(fields.items()),
        )
        self._records.append(event)
        return event

    def records(self, name: Optional[str] = None) -> Tuple[LedgerEvent, ...]:
        if name is None:
            return tuple(self._records)
        return tuple(record for record in self._records if record.name == name)

    def __len__(self) -> int:
        return len(self._records)
