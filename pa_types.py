# pa_types.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class PaStream:
    handle: int
    label: str           # application.name, "" if absent
    start_corked: bool   # created corked, i.e. paused then resumed
    muted: bool


@dataclass(frozen=True)
class PaCard:
    name: str
    profile: str         # active profile name, "" if none


@dataclass(frozen=True)
class SinkVolume:
    percent: float
    total_steps: int

    @property
    def steps(self) -> int:
        return round(self.percent / 100 * self.total_steps)


@dataclass(frozen=True)
class BluezDevice:
    address: str         # "XX_XX_XX_XX_XX_XX"
    mode: str            # profile part of the current default sink name

    @property
    def card(self) -> str:
        return f"bluez_card.{self.address}"

    @property
    def current_sink(self) -> str:
        return self.sink(self.mode)

    def sink(self, profile: str) -> str:
        return f"bluez_sink.{self.address}.{profile}"

    def source(self, profile: str) -> str:
        return f"bluez_source.{self.address}.{profile}"

    @classmethod
    def from_sink_name(cls, sink_name: Optional[str]) -> Optional["BluezDevice"]:
        if not sink_name or not sink_name.startswith("bluez_sink."):
            return None
        rest = sink_name[len("bluez_sink."):]
        address, sep, mode = rest.partition(".")
        if not address or not sep or not mode:
            return None
        return cls(address=address, mode=mode)
