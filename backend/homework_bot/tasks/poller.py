import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class HomeworkPoller(threading.Thread):
    """Runs one batch pass per interval inside the API process (used when Celery is disabled)."""

    def __init__(self, run_once: Callable[[], dict], interval_seconds: float):
        super().__init__(name="homework-poller", daemon=True)
        self.run_once = run_once
        self.interval_seconds = interval_seconds
        self._stopped = threading.Event()

    def run(self):
        logger.info("Homework poller started (interval=%ss)", self.interval_seconds)
        while not self._stopped.is_set():
            try:
                self.run_once()
            except Exception:
                logger.exception("Homework poll raised")
            self._stopped.wait(self.interval_seconds)
        logger.info("Homework poller stopped")

    def stop(self, timeout: float | None = None):
        self._stopped.set()
        self.join(timeout)
