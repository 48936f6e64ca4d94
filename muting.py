# muting.py
from __future__ import annotations

import logging

from backend import ControlError, PulseControlBackend
from models import StreamCategory
from session import Session


log = logging.getLogger(__name__)


class MuteManager:
    def __init__(self, session: Session, backend: PulseControlBackend) -> None:
        self._session = session
        self._backend = backend

    def mute_others(self) -> None:
        """Mute resumed players that are not part of the call."""
        s = self._session
        if not s.mute_enabled:
            return

        try:
            streams = self._backend.list_streams(StreamCategory.OUTPUT, with_flags=True)
        except ControlError as e:
            log.warning("cannot list playback streams, nothing muted: %s", e)
            return

        for st in streams:
            if not st.start_corked or st.muted or not st.label:
                continue
            if (StreamCategory.OUTPUT, st.handle) in s.registry:
                continue
            s.muted[st.handle] = st.label

        if not s.muted:
            return

        log.info("Muting %s", " ".join(sorted(set(s.muted.values()))))
        for handle in sorted(s.muted):
            try:
                self._backend.set_stream_mute(handle, True)
            except ControlError as e:
                log.warning("mute of stream %d failed: %s", handle, e)

    def unmute_others(self) -> None:
        s = self._session
        if not s.muted:
            return

        log.info("Unmuting")
        try:
            for handle in sorted(s.muted):
                try:
                    self._backend.set_stream_mute(handle, False)
                except ControlError as e:
                    log.warning("unmute of stream %d (%s) failed: %s", handle, s.muted[handle], e)
        finally:
            s.muted.clear()
