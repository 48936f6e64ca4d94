# models.py
from __future__ import annotations

import enum
from dataclasses import dataclass


class StreamCategory(enum.Enum):
    OUTPUT = "sink-input"
    INPUT_CAPTURE = "source-output"

    @classmethod
    def from_facility(cls, facility: str) -> "StreamCategory":
        return cls(facility)


class DeviceProfile(enum.Enum):
    HIGH_FIDELITY = "high_fidelity"
    TELEPHONY = "telephony"
    OTHER = "other"


class EventKind(enum.Enum):
    NEW = "new"
    REMOVE = "remove"


@dataclass(frozen=True)
class StreamEvent:
    kind: EventKind
    category: StreamCategory
    handle: int
