"""
Refresh controller for the monitor.

Runs one fetch -> normalize -> aggregate -> summarize cycle and publishes the
result as an immutable DashboardState. Only one refresh runs at a time; a
refresh requested while another is in flight is skipped, so a slow request
can never overwrite the result of a newer one.
"""
import logging
import threading
from dataclasses import replace
from typing import Callable, List, Mapping, Optional

from levelwatch.aggregator import HISTORY_LIMIT, aggregate
from levelwatch.gateway import summarize
from levelwatch.models import DashboardState, RawRow, SensorSnapshot, find_sensor
from levelwatch.sheet_client import FetchError, user_message
from levelwatch.timeparse import now_ms

logger = logging.getLogger(__name__)


class Dashboard:
    """
    Owns the current DashboardState and the refresh cycle that replaces it.

    Responsibilities:
    - Fetch rows through the injected ``fetch_rows`` callable.
    - Derive sensors and gateway status from the rows.
    - Keep the previous data and record a user-facing error on failure.
    - Re-resolve the selected sensor by id after each refresh.
    """

    def __init__(
        self,
        fetch_rows: Callable[[], List[RawRow]],
        nicknames: Optional[Mapping[str, str]] = None,
        history_limit: int = HISTORY_LIMIT,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._fetch_rows = fetch_rows
        self.nicknames = dict(nicknames or {})
        self.history_limit = history_limit
        self._clock = clock

        self._state = DashboardState()
        self._in_flight = threading.Lock()
        self._state_lock = threading.Lock()

        # Statistics tracking
        self.refresh_attempts: int = 0
        self.refresh_succeeded: int = 0
        self.refresh_failed: int = 0
        self.refresh_skipped: int = 0

    @property
    def state(self) -> DashboardState:
        return self._state

    @property
    def selected_sensor(self) -> Optional[SensorSnapshot]:
        return self._state.selected_sensor

    @property
    def loading(self) -> bool:
        return self._in_flight.locked()

    # ------------------------------------------------------------------ #
    # Refresh cycle
    # ------------------------------------------------------------------ #

    def refresh(self, trigger: str = "timer") -> bool:
        """
        Run one refresh cycle unless another is already running.

        Args:
            trigger: "timer" or "manual", for logging only

        Returns:
            True if the cycle ran (successfully or not), False if skipped
        """
        if not self._in_flight.acquire(blocking=False):
            self.refresh_skipped += 1
            logger.info("Refresh (%s) skipped: previous refresh still in flight", trigger)
            return False

        try:
            self.refresh_attempts += 1
            logger.debug("Refresh (%s) started", trigger)

            try:
                rows = list(self._fetch_rows())
            except FetchError as exc:
                self._fail(exc)
                return True
            except Exception as exc:  # noqa: BLE001
                logger.exception("Unexpected error while fetching rows")
                self._fail(exc)
                return True

            sensors = aggregate(rows, self.nicknames, self.history_limit)
            gateway = summarize(rows)

            with self._state_lock:
                selected_id = self._reconcile_selection(self._state.selected_id, sensors)
                self._state = DashboardState(
                    sensors=tuple(sensors),
                    gateway=gateway,
                    logs=tuple(rows),
                    selected_id=selected_id,
                    error=None,
                    last_refreshed=self._clock(),
                )

            self.refresh_succeeded += 1
            logger.info(
                "Refresh (%s) complete: %d rows, %d sensors",
                trigger,
                len(rows),
                len(sensors),
            )
            return True
        finally:
            self._in_flight.release()

    def _fail(self, exc: BaseException) -> None:
        """Keep the previous data and surface a user-facing error."""
        self.refresh_failed += 1
        message = user_message(exc)
        logger.error("Refresh failed: %s", exc)

        with self._state_lock:
            self._state = replace(self._state, error=message)

    @staticmethod
    def _reconcile_selection(
        selected_id: Optional[str],
        sensors: List[SensorSnapshot],
    ) -> Optional[str]:
        """Keep the selection only if the sensor is still present."""
        if selected_id is None:
            return None
        if find_sensor(sensors, selected_id) is None:
            logger.info("Selected sensor %s no longer reported; clearing selection", selected_id)
            return None
        return selected_id

    # ------------------------------------------------------------------ #
    # Selection
    # ------------------------------------------------------------------ #

    def select(self, sensor_id: str) -> Optional[SensorSnapshot]:
        """
        Select a sensor by id.

        Returns:
            The selected snapshot, or None (and no selection) if the id is
            not in the current state
        """
        with self._state_lock:
            sensor = find_sensor(self._state.sensors, sensor_id)
            self._state = replace(
                self._state,
                selected_id=sensor.id if sensor is not None else None,
            )
        return sensor

    def clear_selection(self) -> None:
        with self._state_lock:
            self._state = replace(self._state, selected_id=None)
