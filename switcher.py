# switcher.py
from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from backend import ControlError, PulseControlBackend
from models import DeviceProfile, EventKind, StreamCategory, StreamEvent
from muting import MuteManager
from pa_types import BluezDevice
from session import Session


log = logging.getLogger(__name__)


class SwitchOrchestrator:
    """
    Moves the active Bluetooth card between its two profiles.

    Each command is its own step: a failed step is logged and the rest still run.
    Nothing is rolled back.
    """

    def __init__(self, session: Session, backend: PulseControlBackend, mute: MuteManager) -> None:
        self._session = session
        self._backend = backend
        self._mute = mute

    def _resolve(self) -> Optional[BluezDevice]:
        try:
            dev = self._backend.bluez_device()
        except ControlError as e:
            log.warning("cannot find the default sink: %s", e)
            return None
        if dev is None:
            log.debug("default sink is not a Bluetooth device, nothing to switch")
        return dev

    def _read_volume(self, dev: BluezDevice, target_sink: str) -> Optional[int]:
        if dev.current_sink == target_sink:
            return None
        try:
            return self._backend.sink_volume(dev.current_sink).steps
        except ControlError as e:
            log.warning("cannot read volume of %s: %s", dev.current_sink, e)
            return None

    def _step(self, fn: Callable[..., None], *args: object) -> None:
        try:
            fn(*args)
        except ControlError as e:
            log.warning("%s", e)

    def _restore_volume(self, sink_name: str, entering: DeviceProfile) -> None:
        saved = self._session.volumes.saved(entering)
        if saved is None:
            return
        log.info("Resetting volume to %d", saved)
        self._step(self._backend.set_sink_volume, sink_name, saved)

    def switch_to_telephony(self) -> bool:
        s = self._session
        dev = self._resolve()
        if dev is None:
            return False

        profile = s.telephony_profile
        sink = dev.sink(profile)
        source = dev.source(profile)
        pending = self._read_volume(dev, sink)

        self._mute.mute_others()

        log.info("Switching %s to %s", dev.card, profile)
        b = self._backend
        self._step(b.set_card_profile, dev.card, profile)
        self._step(b.set_default_source, source)
        self._step(b.set_default_sink, sink)
        for h in s.registry.handles(StreamCategory.OUTPUT):
            self._step(b.move_stream, StreamCategory.OUTPUT, h, sink)
        for h in s.registry.handles(StreamCategory.INPUT_CAPTURE):
            self._step(b.move_stream, StreamCategory.INPUT_CAPTURE, h, source)

        self._restore_volume(sink, DeviceProfile.TELEPHONY)
        s.volumes.store(s.classify_profile(dev.mode), pending)
        return True

    def switch_to_high_fidelity(self) -> bool:
        s = self._session
        dev = self._resolve()
        if dev is None:
            return False

        profile = s.high_fidelity_profile
        sink = dev.sink(profile)
        pending = self._read_volume(dev, sink)

        log.info("Switching %s back to %s", dev.card, profile)
        b = self._backend
        self._step(b.set_card_profile, dev.card, profile)
        self._step(b.set_default_sink, sink)

        self._restore_volume(sink, DeviceProfile.HIGH_FIDELITY)
        s.volumes.store(s.classify_profile(dev.mode), pending)

        self._mute.unmute_others()
        return True


class CallStateDecider:
    """Feeds stream events into the registry and switches when a call starts or ends."""

    LOOKUP_TRIES = 5

    def __init__(
        self,
        session: Session,
        backend: PulseControlBackend,
        orchestrator: SwitchOrchestrator,
        sleep: Callable[[float], None] = time.sleep,
        lookup_interval: float = 1.0,
    ) -> None:
        self._session = session
        self._backend = backend
        self._orchestrator = orchestrator
        self._sleep = sleep
        self._lookup_interval = lookup_interval

    def current_profile(self) -> DeviceProfile:
        try:
            dev = self._backend.bluez_device()
            if dev is None:
                return DeviceProfile.OTHER
            name = self._backend.card_profile(dev.card)
        except ControlError as e:
            log.warning("cannot read the card profile: %s", e)
            return DeviceProfile.OTHER
        return self._session.classify_profile(name)

    def lookup_label(self, category: StreamCategory, handle: int) -> Optional[str]:
        """
        Application label of a stream, or None if it never shows up.
        A just-created stream may not be listed yet, so a miss is retried.
        """
        for attempt in range(self.LOOKUP_TRIES):
            if attempt:
                self._sleep(self._lookup_interval)
            try:
                st = self._backend.find_stream(category, handle)
            except ControlError as e:
                log.debug("lookup of %s #%d failed: %s", category.value, handle, e)
                continue
            if st is not None:
                return st.label
        log.debug("%s #%d vanished before it could be identified", category.value, handle)
        return None

    def handle(self, ev: StreamEvent) -> None:
        if ev.kind is EventKind.NEW:
            self.on_new(ev.category, ev.handle, self.lookup_label(ev.category, ev.handle))
        elif ev.kind is EventKind.REMOVE:
            self.on_remove(ev.category, ev.handle)

    def on_new(self, category: StreamCategory, handle: int, label: Optional[str]) -> bool:
        if not self._session.registry.record_new(category, handle, label):
            return False
        self._maybe_switch()
        return True

    def on_remove(self, category: StreamCategory, handle: int) -> bool:
        if not self._session.registry.record_remove(category, handle):
            return False
        self._maybe_switch_back()
        return True

    def _maybe_switch(self) -> None:
        if not self._session.registry.is_in_call():
            return
        if self.current_profile() is DeviceProfile.TELEPHONY:
            return
        self._orchestrator.switch_to_telephony()

    def _maybe_switch_back(self) -> None:
        if not self._session.registry.is_released():
            return
        if self.current_profile() is not DeviceProfile.TELEPHONY:
            return
        self._orchestrator.switch_to_high_fidelity()

    def seed(self) -> None:
        """Register calls already running, then act on them once."""
        reg = self._session.registry
        seeded = False
        for category in StreamCategory:
            try:
                streams = self._backend.list_streams(category)
            except ControlError as e:
                log.warning("cannot list existing %ss: %s", category.value, e)
                continue
            for st in streams:
                if reg.record_new(category, st.handle, st.label):
                    seeded = True
        if seeded:
            self._maybe_switch()
