"""Recurring background job with an execution window and cooperative stop."""

import logging
import random
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)


class PeriodicScheduler:
    """Runs `job` repeatedly, waiting between `interval` and `interval + flex`
    seconds before each run.

    The wait is interruptible: stop() wakes the worker and no further runs
    start. A run already in progress is left to finish.
    """

    def __init__(
        self,
        job: Callable[[], object],
        interval_seconds: float,
        flex_seconds: float = 0.0,
        name: str = "wxsync-scheduler",
        rng: random.Random | None = None,
    ):
        if interval_seconds <= 0:
            raise ValueError(f"interval must be positive, got {interval_seconds}")
        self.job = job
        self.interval_seconds = interval_seconds
        self.flex_seconds = max(0.0, flex_seconds)
        self.name = name
        self._rng = rng or random.Random()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def next_delay(self) -> float:
        return self.interval_seconds + self._rng.uniform(0.0, self.flex_seconds)

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name=self.name, daemon=True)
        self._thread.start()
        logger.info(
            "Scheduled sync every %.0fs (+%.0fs flex)", self.interval_seconds, self.flex_seconds
        )

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def _loop(self) -> None:
        while not self._stop.wait(self.next_delay()):
            self.runs += 1
            try:
                self.job()
            except Exception:
                logger.exception("Scheduled job failed (run %d)", self.runs)
