"""Background thread that runs the reminder sweeper on an interval."""

from __future__ import annotations

import logging
import threading

from performance_track.workflow.sweeper import ReminderSweeper

logger = logging.getLogger(__name__)


class SweeperRunner:
    def __init__(self, *, sweeper: ReminderSweeper, interval_seconds: float) -> None:
        self._sweeper = sweeper
        self._interval = interval_seconds
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run,
            name="reminder-sweeper",
            daemon=True,
        )
        self._thread.start()
        logger.info("Reminder sweeper started", extra={"interval_seconds": self._interval})

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            self._thread = None
        logger.info("Reminder sweeper stopped")

    def _run(self) -> None:
        # First sweep waits one interval so startup is not slowed by a scan.
        while not self._stop.wait(self._interval):
            try:
                self._sweeper.sweep()
            except Exception:
                logger.exception("Reminder sweep failed")
