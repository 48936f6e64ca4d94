# startup.py
from __future__ import annotations

import logging
import time
from typing import Callable, Optional, TypeVar

from pa_events import SubscriptionError


log = logging.getLogger(__name__)

T = TypeVar("T")


class StartupTimeout(RuntimeError):
    pass


class StartupSynchronizer:
    """
    Keeps trying to subscribe until the audio server is up.
    The daemon is often started at login, before the server has finished starting.
    """

    def __init__(
        self,
        timeout: float = 30.0,
        retry_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.timeout = timeout
        self.retry_interval = retry_interval
        self._clock = clock
        self._sleep = sleep
        self._start: Optional[float] = None
        self._attempts = 0

    def connect(self, opener: Callable[[], T]) -> T:
        """
        Open the subscription, retrying until the budget runs out.
        The budget is counted from the first call, so a feed that dies before
        delivering anything can be reopened with whatever time is left.
        """
        if self._start is None:
            self._start = self._clock()
        while True:
            self._attempts += 1
            try:
                conn = opener()
            except SubscriptionError as e:
                log.debug("subscription attempt %d failed: %s", self._attempts, e)
            else:
                log.info("subscribed to audio server events after %d attempt(s)", self._attempts)
                return conn
            self.wait_retry()

    def wait_retry(self) -> None:
        if self._start is None:
            self._start = self._clock()
        if self._clock() - self._start >= self.timeout:
            raise StartupTimeout(
                f"audio server not reachable after {self.timeout:g}s ({self._attempts} attempts)"
            )
        self._sleep(self.retry_interval)
