# backend.py
from __future__ import annotations

import logging
from typing import Callable, List, Optional, Set, TypeVar

import pulsectl

from models import StreamCategory
from pa_cli import pacmd_start_corked_sink_inputs
from pa_types import BluezDevice, PaCard, PaStream, SinkVolume


log = logging.getLogger(__name__)

T = TypeVar("T")

# PA_VOLUME_NORM, the raw volume value of 100%.
PA_VOLUME_NORM = 0x10000


class ControlError(RuntimeError):
    pass


class PulseControlBackend:
    """
    Queries and commands against the audio server, via pulsectl.
    Every failure, including not reaching the server at all, surfaces as ControlError.
    """

    def __init__(
        self,
        pulse_client_name: str = "bt-autoswitch",
        start_corked_probe: Callable[[], Set[int]] = pacmd_start_corked_sink_inputs,
    ) -> None:
        self._pulse_client_name = pulse_client_name
        self._pulse: Optional[pulsectl.Pulse] = None
        self._start_corked_probe = start_corked_probe

    def _pulse_connect(self) -> pulsectl.Pulse:
        if self._pulse is None:
            self._pulse = pulsectl.Pulse(self._pulse_client_name)
        return self._pulse

    def close(self) -> None:
        if self._pulse is not None:
            try:
                self._pulse.close()
            except Exception:
                pass
        self._pulse = None

    def _call(self, what: str, fn: Callable[[pulsectl.Pulse], T]) -> T:
        try:
            return fn(self._pulse_connect())
        except (pulsectl.PulseError, pulsectl.PulseDisconnected) as e:
            if isinstance(e, pulsectl.PulseDisconnected):
                self.close()
            raise ControlError(f"{what} failed: {e}") from e

    # queries

    def _start_corked(self) -> Set[int]:
        try:
            return self._start_corked_probe()
        except RuntimeError as e:
            log.warning("cannot read stream flags, no stream counts as resumed: %s", e)
            return set()

    def list_streams(self, category: StreamCategory, with_flags: bool = False) -> List[PaStream]:
        """start_corked is only filled in with with_flags; reading it runs pacmd."""
        corked: Set[int] = set()
        if category is StreamCategory.OUTPUT:
            raw = self._call("list sink inputs", lambda p: p.sink_input_list())
            if with_flags:
                corked = self._start_corked()
        else:
            raw = self._call("list source outputs", lambda p: p.source_output_list())

        out: List[PaStream] = []
        for s in raw:
            props = getattr(s, "proplist", None) or {}
            out.append(
                PaStream(
                    handle=int(s.index),
                    label=str(props.get("application.name") or ""),
                    start_corked=int(s.index) in corked,
                    muted=bool(s.mute),
                )
            )
        return out

    def find_stream(self, category: StreamCategory, handle: int) -> Optional[PaStream]:
        return next((s for s in self.list_streams(category) if s.handle == handle), None)

    def list_cards(self) -> List[PaCard]:
        out: List[PaCard] = []
        for c in self._call("list cards", lambda p: p.card_list()):
            active = getattr(c, "profile_active", None)
            out.append(PaCard(name=c.name, profile=active.name if active is not None else ""))
        return out

    def card_profile(self, card_name: str) -> Optional[str]:
        card = next((c for c in self.list_cards() if c.name == card_name), None)
        if card is None or not card.profile:
            return None
        return card.profile

    def default_sink_name(self) -> str:
        return self._call("server info", lambda p: p.server_info().default_sink_name) or ""

    def bluez_device(self) -> Optional[BluezDevice]:
        return BluezDevice.from_sink_name(self.default_sink_name())

    def sink_volume(self, sink_name: str) -> SinkVolume:
        sink = self._call(f"look up sink {sink_name}", lambda p: p.get_sink_by_name(sink_name))
        vol = SinkVolume(
            percent=sink.volume.value_flat * 100,
            total_steps=PA_VOLUME_NORM,
        )
        log.info("%s volume: %d / %d", sink_name, vol.steps, vol.total_steps)
        return vol

    # commands

    def set_card_profile(self, card_name: str, profile: str) -> None:
        log.debug("set-card-profile %s %s", card_name, profile)
        self._call(
            f"set-card-profile {card_name} {profile}",
            lambda p: p.card_profile_set(p.get_card_by_name(card_name), profile),
        )

    def set_default_sink(self, sink_name: str) -> None:
        log.debug("set-default-sink %s", sink_name)
        self._call(f"set-default-sink {sink_name}", lambda p: p.sink_default_set(sink_name))

    def set_default_source(self, source_name: str) -> None:
        log.debug("set-default-source %s", source_name)
        self._call(f"set-default-source {source_name}", lambda p: p.source_default_set(source_name))

    def move_stream(self, category: StreamCategory, handle: int, device_name: str) -> None:
        if category is StreamCategory.OUTPUT:
            log.debug("move-sink-input %d %s", handle, device_name)
            self._call(
                f"move-sink-input {handle} {device_name}",
                lambda p: p.sink_input_move(handle, p.get_sink_by_name(device_name).index),
            )
        else:
            log.debug("move-source-output %d %s", handle, device_name)
            self._call(
                f"move-source-output {handle} {device_name}",
                lambda p: p.source_output_move(handle, p.get_source_by_name(device_name).index),
            )

    def set_sink_volume(self, sink_name: str, steps: int) -> None:
        log.debug("set-sink-volume %s %d", sink_name, steps)
        self._call(
            f"set-sink-volume {sink_name} {steps}",
            lambda p: p.volume_set_all_chans(p.get_sink_by_name(sink_name), steps / PA_VOLUME_NORM),
        )

    def set_stream_mute(self, handle: int, mute: bool) -> None:
        log.debug("set-sink-input-mute %d %d", handle, int(mute))
        self._call(
            f"set-sink-input-mute {handle} {int(mute)}",
            lambda p: p.sink_input_mute(handle, mute),
        )
