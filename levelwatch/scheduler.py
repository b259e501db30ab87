"""
Fixed-interval polling scheduler.

Owned by the caller instead of living in module state: create it, ``start()``
it, ``stop()`` it. The clock is injectable so due-time logic can be driven by
tests without sleeping.
"""
import logging
import threading
import time
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 60.0


class PollingScheduler:
    """
    Runs ``task`` every ``interval`` seconds on a background thread.

    The task receives the trigger name ("timer" or "manual"). Exceptions it
    raises are logged and do not stop the schedule.
    """

    def __init__(
        self,
        task: Callable[[str], Any],
        interval: float = DEFAULT_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        poll_step: float = 1.0,
    ):
        """
        Initialize the scheduler (not started).

        Args:
            task: Callable invoked with the trigger name
            interval: Seconds between timer-triggered runs
            clock: Monotonic time source in seconds
            poll_step: How often the background thread checks the clock
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")

        self.task = task
        self.interval = interval
        self._clock = clock
        self._poll_step = min(poll_step, interval)

        self._next_due: Optional[float] = None
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.runs: int = 0
        self.errors: int = 0

    def is_running(self) -> bool:
        """Check if the background loop is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """
        Start polling. The first run happens right away.
        Non-blocking call.
        """
        if self.is_running():
            logger.warning("Scheduler already running")
            return

        logger.info("Starting scheduler (interval=%ss)", self.interval)
        self._stop_event.clear()
        self._next_due = self._clock()
        self._thread = threading.Thread(
            target=self._loop,
            name="levelwatch-poller",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: Optional[float] = 10.0) -> None:
        """Stop polling and wait for the background thread to exit."""
        logger.info("Stopping scheduler")
        self._stop_event.set()

        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                # Keep the reference so start() cannot spawn a second loop
                logger.warning("Scheduler thread did not exit within %ss", timeout)
                return
            self._thread = None

        self._next_due = None
        logger.info("Scheduler stopped")

    def tick(self) -> bool:
        """
        Run the task if it is due.

        Returns:
            True if the task was run
        """
        now = self._clock()
        if self._next_due is None:
            self._next_due = now

        if now < self._next_due:
            return False

        self._next_due = now + self.interval
        self._run("timer")
        return True

    def trigger(self) -> None:
        """Run the task now (manual refresh) and restart the interval."""
        self._next_due = self._clock() + self.interval
        self._run("manual")

    def _loop(self) -> None:
        while not self._stop_event.is_set():
            self.tick()
            self._stop_event.wait(self._poll_step)

    def _run(self, trigger: str) -> None:
        self.runs += 1
        try:
            self.task(trigger)
        except Exception:  # noqa: BLE001
            self.errors += 1
            logger.exception("Scheduled task failed (%s)", trigger)
