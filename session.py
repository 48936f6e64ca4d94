# session.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from client_filter import ClientFilter
from models import DeviceProfile
from registry import ConnectionRegistry


class VolumeMemory:
    """
    Volume (in steps) to replay after a profile switch.

    With a single slot, the volume read before one switch is replayed after the
    next switch, whichever direction that is. With per_profile, the volume of the
    profile being left is kept for when that profile comes back.
    """

    def __init__(self, per_profile: bool = False) -> None:
        self.per_profile = per_profile
        self._slot: Optional[int] = None
        self._by_profile: Dict[DeviceProfile, Optional[int]] = {}

    def saved(self, entering: DeviceProfile) -> Optional[int]:
        if self.per_profile:
            return self._by_profile.get(entering)
        return self._slot

    def store(self, leaving: DeviceProfile, steps: Optional[int]) -> None:
        if self.per_profile:
            if steps is not None:
                self._by_profile[leaving] = steps
            return
        self._slot = steps


@dataclass
class Session:
    """All mutable daemon state; only the event loop thread touches it."""

    client_filter: ClientFilter
    mute_enabled: bool = True
    high_fidelity_profile: str = "a2dp_sink"
    telephony_profile: str = "headset_head_unit"
    per_profile_volume: bool = False
    registry: ConnectionRegistry = field(init=False)
    volumes: VolumeMemory = field(init=False)
    muted: Dict[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.registry = ConnectionRegistry(self.client_filter)
        self.volumes = VolumeMemory(per_profile=self.per_profile_volume)

    def classify_profile(self, name: Optional[str]) -> DeviceProfile:
        if name == self.telephony_profile:
            return DeviceProfile.TELEPHONY
        if name == self.high_fidelity_profile:
            return DeviceProfile.HIGH_FIDELITY
        return DeviceProfile.OTHER
