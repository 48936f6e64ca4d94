# pa_events.py
from __future__ import annotations

import logging
import re
import subprocess
from typing import Iterable, Iterator, Optional

from models import EventKind, StreamCategory, StreamEvent
from pa_cli import pactl_subscribe


log = logging.getLogger(__name__)

_EVENT_RE = re.compile(r"^Event '(new|remove)' on (sink-input|source-output) #(\d+)\s*$")


class SubscriptionError(RuntimeError):
    pass


def parse_event_line(line: str) -> Optional[StreamEvent]:
    """
    "Event 'new' on sink-input #42" -> StreamEvent.
    Anything else (client events, 'change', other facilities, junk) -> None.
    """
    m = _EVENT_RE.match(line.strip())
    if not m:
        return None
    return StreamEvent(
        kind=EventKind(m.group(1)),
        category=StreamCategory.from_facility(m.group(2)),
        handle=int(m.group(3)),
    )


def parse_events(lines: Iterable[str]) -> Iterator[StreamEvent]:
    for line in lines:
        ev = parse_event_line(line)
        if ev is None:
            log.debug("ignored: %s", line.rstrip())
            continue
        yield ev


class EventSource:
    """Lazy, in-order feed of stream events from one `pactl subscribe` process."""

    def __init__(self, proc: subprocess.Popen[str]) -> None:
        self._proc = proc

    @classmethod
    def open(cls, settle: float = 1.0) -> "EventSource":
        try:
            proc = pactl_subscribe()
        except RuntimeError as e:
            raise SubscriptionError(str(e)) from e

        try:
            rc = proc.wait(timeout=settle)
        except subprocess.TimeoutExpired:
            return cls(proc)

        # stderr is merged into stdout; after an early exit it holds the reason.
        err = (proc.stdout.read() if proc.stdout else "").strip()
        raise SubscriptionError(f"pactl subscribe exited with {rc}: {err}")

    def __iter__(self) -> Iterator[StreamEvent]:
        if self._proc.stdout is None:
            return iter(())
        return parse_events(self._proc.stdout)

    def close(self) -> None:
        if self._proc.poll() is None:
            self._proc.terminate()
            try:
                self._proc.wait(timeout=2)
            except subprocess.TimeoutExpired:
                self._proc.kill()
