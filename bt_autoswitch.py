# bt_autoswitch.py
"""
Switch a Bluetooth headset between A2DP and HSP/HFP when a call starts or ends.

Listens to audio server stream events. When an approved calling application uses
both the speaker and the microphone, the headset goes to the telephony profile,
other resumed players are muted, and the volume last used for that direction is
restored. When the call ends everything is switched back.

Disable module-role-cork in the audio server; it fights with the muting done here.
"""
from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import Callable, Iterator, Optional, Protocol

from backend import PulseControlBackend
from logging_config import setup_logging
from models import StreamEvent
from muting import MuteManager
from pa_events import EventSource
from session import Session
from startup import StartupSynchronizer, StartupTimeout
from store_config import AppConfig, ConfigError, ConfigStore
from switcher import CallStateDecider, SwitchOrchestrator


log = logging.getLogger("bt_autoswitch")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


class EventFeed(Protocol):
    def __iter__(self) -> Iterator[StreamEvent]: ...

    def close(self) -> None: ...


def build_session(cfg: AppConfig) -> Session:
    return Session(
        client_filter=cfg.client_filter,
        mute_enabled=cfg.mute_enabled,
        high_fidelity_profile=cfg.high_fidelity_profile,
        telephony_profile=cfg.telephony_profile,
        per_profile_volume=cfg.per_profile_volume,
    )


def run(
    cfg: AppConfig,
    backend: Optional[PulseControlBackend] = None,
    opener: Optional[Callable[[], EventFeed]] = None,
    synchronizer: Optional[StartupSynchronizer] = None,
) -> int:
    session = build_session(cfg)
    backend = backend or PulseControlBackend()
    orchestrator = SwitchOrchestrator(session, backend, MuteManager(session, backend))
    decider = CallStateDecider(session, backend, orchestrator)

    sync = synchronizer or StartupSynchronizer(cfg.startup_timeout, cfg.retry_interval)
    if opener is None:
        opener = lambda: EventSource.open(settle=cfg.retry_interval)  # noqa: E731

    try:
        while True:
            feed = sync.connect(opener)
            events = 0
            try:
                decider.seed()
                for ev in feed:
                    events += 1
                    decider.handle(ev)
            finally:
                feed.close()
            if events:
                break
            # Still starting up: the server went away before saying anything.
            log.warning("event feed ended before the first event, resubscribing")
            sync.wait_retry()
    except StartupTimeout as e:
        log.error("giving up: %s", e)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        return EXIT_OK
    finally:
        backend.close()

    log.error("event feed ended; restart once the audio server is back")
    return EXIT_FAILURE


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Switch Bluetooth headsets to the telephony profile during calls."
    )
    parser.add_argument("--config", type=Path, default=None, help="config file (default: XDG config dir)")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (debug, info, warning, error). Can also use BT_AUTOSWITCH_LOG_LEVEL.",
    )
    parser.add_argument("--no-mute", action="store_true", help="do not mute other players during calls")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)

    try:
        cfg = ConfigStore(path_override=args.config).load()
    except (ConfigError, OSError) as e:
        log.error("bad configuration: %s", e)
        return EXIT_CONFIG

    if args.no_mute:
        cfg = dataclasses.replace(cfg, mute_enabled=False)

    return run(cfg)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
