"""
Shared fixtures: a scriptable stand-in for the audio server backend.
"""

import dataclasses
import sys
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from backend import ControlError  # noqa: E402
from client_filter import ClientFilter  # noqa: E402
from models import StreamCategory  # noqa: E402
from muting import MuteManager  # noqa: E402
from pa_types import BluezDevice, PaStream, SinkVolume  # noqa: E402
from session import Session  # noqa: E402
from switcher import CallStateDecider, SwitchOrchestrator  # noqa: E402


ADDR = "00_11_22_33_44_55"
A2DP_SINK = f"bluez_sink.{ADDR}.a2dp_sink"
HSP_SINK = f"bluez_sink.{ADDR}.headset_head_unit"
HSP_SOURCE = f"bluez_source.{ADDR}.headset_head_unit"
CARD = f"bluez_card.{ADDR}"


class FakeBackend:
    """Records commands; commands named in `failing` raise ControlError."""

    def __init__(self) -> None:
        self.default_sink = A2DP_SINK
        self.cards: Dict[str, str] = {CARD: "a2dp_sink"}
        self.streams: Dict[StreamCategory, List[PaStream]] = {c: [] for c in StreamCategory}
        self.volumes: Dict[str, SinkVolume] = {}
        self.failing: Set[str] = set()
        self.calls: List[Tuple] = []
        self.closed = False

    def add_stream(self, category: StreamCategory, handle: int, label: str,
                   start_corked: bool = False, muted: bool = False) -> None:
        self.streams[category].append(PaStream(handle, label, start_corked, muted))

    def _maybe_fail(self, name: str) -> None:
        if name in self.failing:
            raise ControlError(f"{name} failed: boom")

    def commands(self, name: Optional[str] = None) -> List[Tuple]:
        return [c for c in self.calls if name is None or c[0] == name]

    # queries

    def list_streams(self, category: StreamCategory, with_flags: bool = False) -> List[PaStream]:
        self._maybe_fail("list_streams")
        if with_flags:
            return list(self.streams[category])
        return [dataclasses.replace(s, start_corked=False) for s in self.streams[category]]

    def find_stream(self, category: StreamCategory, handle: int) -> Optional[PaStream]:
        self._maybe_fail("find_stream")
        return next((s for s in self.streams[category] if s.handle == handle), None)

    def card_profile(self, card_name: str) -> Optional[str]:
        self._maybe_fail("card_profile")
        return self.cards.get(card_name) or None

    def bluez_device(self) -> Optional[BluezDevice]:
        self._maybe_fail("bluez_device")
        return BluezDevice.from_sink_name(self.default_sink)

    def sink_volume(self, sink_name: str) -> SinkVolume:
        self._maybe_fail("sink_volume")
        if sink_name not in self.volumes:
            raise ControlError(f"look up sink {sink_name} failed: no such entity")
        return self.volumes[sink_name]

    # commands

    def set_card_profile(self, card_name: str, profile: str) -> None:
        self.calls.append(("set_card_profile", card_name, profile))
        self._maybe_fail("set_card_profile")
        self.cards[card_name] = profile

    def set_default_sink(self, sink_name: str) -> None:
        self.calls.append(("set_default_sink", sink_name))
        self._maybe_fail("set_default_sink")
        self.default_sink = sink_name

    def set_default_source(self, source_name: str) -> None:
        self.calls.append(("set_default_source", source_name))
        self._maybe_fail("set_default_source")

    def move_stream(self, category: StreamCategory, handle: int, device_name: str) -> None:
        self.calls.append(("move_stream", category, handle, device_name))
        self._maybe_fail("move_stream")

    def set_sink_volume(self, sink_name: str, steps: int) -> None:
        self.calls.append(("set_sink_volume", sink_name, steps))
        self._maybe_fail("set_sink_volume")

    def set_stream_mute(self, handle: int, mute: bool) -> None:
        self.calls.append(("set_stream_mute", handle, mute))
        self._maybe_fail("set_stream_mute")

    def close(self) -> None:
        self.closed = True


class Rig:
    def __init__(self, session: Session, backend: FakeBackend) -> None:
        self.session = session
        self.backend = backend
        self.mute = MuteManager(session, backend)
        self.orchestrator = SwitchOrchestrator(session, backend, self.mute)
        self.decider = CallStateDecider(session, backend, self.orchestrator, sleep=lambda s: None)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def session():
    return Session(client_filter=ClientFilter())


@pytest.fixture
def rig(session, fake_backend):
    return Rig(session, fake_backend)
