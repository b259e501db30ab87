"""
Water-Level Monitor - Main Entry Point

Orchestrates the refresh cycle: sheet backend → normalization → sensor and
gateway summaries. Polls on a fixed interval and logs the dashboard state.
Send SIGUSR1 to request an immediate (manual) refresh.
"""

import logging
import math
import signal
import sys
import time
from typing import Optional

from levelwatch.aggregator import irrigation_advice
from levelwatch.config import config
from levelwatch.dashboard import Dashboard
from levelwatch.scheduler import PollingScheduler
from levelwatch.sheet_client import SheetClient
from levelwatch.timeparse import format_date_time, time_ago


# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )


logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Main Application
# ---------------------------------------------------------------------------

class MonitorApp:
    """
    Main application class for the water-level monitor.

    Responsibilities:
    - Create the sheet client, dashboard controller and scheduler.
    - Log a summary of sensors and gateway health after every refresh.
    - Track and report refresh statistics.
    """

    def __init__(self) -> None:
        """Initialize the application but do not start polling yet."""
        logger.info("=" * 70)
        logger.info("Water-Level Monitor Starting")
        logger.info("=" * 70)

        # Display effective configuration
        logger.info("Configuration: %s", config)

        self.start_time: float = time.time()

        # Components (created in setup)
        self.sheet_client: Optional[SheetClient] = None
        self.dashboard: Optional[Dashboard] = None
        self.scheduler: Optional[PollingScheduler] = None

        # Flags set from signal handlers, acted on by the main loop
        self.shutdown_requested: bool = False
        self.refresh_requested: bool = False

    # ------------------------------------------------------------------ #
    # Setup & lifecycle
    # ------------------------------------------------------------------ #

    def setup(self) -> None:
        """
        Create components and start polling.

        Raises:
            ValueError: If the sheet URL is not configured.
        """
        if not config.sheet.url:
            raise ValueError("SHEET_URL is not set")

        logger.info("Setting up sheet client...")
        self.sheet_client = SheetClient(config.sheet)

        self.dashboard = Dashboard(
            fetch_rows=self.sheet_client.fetch_rows,
            nicknames=config.nicknames,
            history_limit=config.polling.history_limit,
        )

        self.scheduler = PollingScheduler(
            task=self._on_refresh_due,
            interval=config.polling.interval,
        )
        self.scheduler.start()

        logger.info("=" * 70)
        logger.info("Setup complete! Polling every %.0fs", config.polling.interval)
        logger.info("Press Ctrl+C to stop")
        logger.info("=" * 70)

    # ------------------------------------------------------------------ #
    # Refresh callback and reporting
    # ------------------------------------------------------------------ #

    def _on_refresh_due(self, trigger: str) -> None:
        """
        Callback invoked by the scheduler.

        Args:
            trigger: "timer" or "manual"
        """
        if self.dashboard is None:
            logger.error("Dashboard not initialized; cannot refresh.")
            return

        if not self.dashboard.refresh(trigger):
            return

        self._report()

        if self.dashboard.refresh_attempts % 10 == 0:
            self._show_statistics()

    def _report(self) -> None:
        """Log the current sensor and gateway state."""
        state = self.dashboard.state

        if state.error:
            logger.warning("Data unavailable: %s", state.error)

        gateway = state.gateway
        if gateway is not None:
            logger.info(
                "Gateway | %s (%s) | WiFi: %s [%d/4] | GSM: %s [%d/4] | SD free: %s MB | Last batch: %s",
                gateway.network,
                gateway.sim_operator,
                gateway.wifi_signal,
                gateway.wifi_signal.tier,
                gateway.gsm_signal,
                gateway.gsm_signal.tier,
                gateway.sd_free,
                format_date_time(gateway.last_batch_upload),
            )

        if not state.sensors:
            logger.info("Waiting for data from the gateway...")
            return

        for sensor in state.sensors:
            level = "n/a" if math.isnan(sensor.current_level) else f"{sensor.current_level:.1f} cm"
            logger.info(
                "  %-20s %-10s %-12s %-26s %s",
                sensor.name,
                level,
                sensor.status.value,
                irrigation_advice(sensor.current_level).value,
                time_ago(sensor.last_updated),
            )

    def _show_statistics(self) -> None:
        """Display application statistics in the logs."""
        uptime = time.time() - self.start_time
        uptime_str = time.strftime("%H:%M:%S", time.gmtime(uptime))

        dashboard = self.dashboard
        success_rate = (
            (dashboard.refresh_succeeded / dashboard.refresh_attempts * 100.0)
            if dashboard.refresh_attempts > 0
            else 0.0
        )

        logger.info("-" * 70)
        logger.info("Statistics | Uptime: %s", uptime_str)
        logger.info(
            "  Refreshes: %d | OK: %d | Failed: %d | Skipped: %d | Success: %.1f%%",
            dashboard.refresh_attempts,
            dashboard.refresh_succeeded,
            dashboard.refresh_failed,
            dashboard.refresh_skipped,
            success_rate,
        )
        logger.info("-" * 70)

    # ------------------------------------------------------------------ #
    # Main loop and shutdown
    # ------------------------------------------------------------------ #

    def run(self) -> None:
        """
        Main application loop.

        Keeps the application running until shutdown is requested.
        """
        try:
            while not self.shutdown_requested:
                time.sleep(1.0)
                if self.refresh_requested and self.scheduler is not None:
                    self.refresh_requested = False
                    logger.info("Manual refresh requested")
                    self.scheduler.trigger()
        except KeyboardInterrupt:
            logger.info("Keyboard interrupt received")
            self.shutdown_requested = True
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Stop polling, close the HTTP session and display final statistics."""
        if not self.shutdown_requested:
            self.shutdown_requested = True

        logger.info("=" * 70)
        logger.info("Shutting down Water-Level Monitor")
        logger.info("=" * 70)

        if self.scheduler is not None:
            try:
                self.scheduler.stop()
            except Exception:  # noqa: BLE001
                logger.exception("Error while stopping scheduler")
            self.scheduler = None

        if self.dashboard is not None:
            self._show_statistics()

        if self.sheet_client is not None:
            try:
                self.sheet_client.close()
            except Exception:  # noqa: BLE001
                logger.exception("Error while closing sheet client")
            self.sheet_client = None

        logger.info("Shutdown complete. Goodbye!")
        logger.info("=" * 70)


# ---------------------------------------------------------------------------
# Signal handling and entrypoint
# ---------------------------------------------------------------------------

# Module-level reference for signal handler access
_APP_INSTANCE: Optional[MonitorApp] = None


def signal_handler(signum: int, frame: object | None) -> None:
    """
    Handle termination signals (SIGINT, SIGTERM).

    Triggers graceful shutdown of the application.
    """
    logger.info("Received signal %s", signum)
    if _APP_INSTANCE is not None:
        _APP_INSTANCE.shutdown_requested = True
    else:
        sys.exit(0)


def refresh_handler(signum: int, frame: object | None) -> None:
    """Handle SIGUSR1 by requesting a manual refresh."""
    if _APP_INSTANCE is not None:
        _APP_INSTANCE.refresh_requested = True


def main() -> None:
    """Main entry point for the application."""
    global _APP_INSTANCE

    configure_logging()

    app = MonitorApp()
    _APP_INSTANCE = app

    # Register signal handlers for graceful shutdown
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)
    if hasattr(signal, "SIGUSR1"):
        signal.signal(signal.SIGUSR1, refresh_handler)

    try:
        app.setup()
    except ValueError as exc:
        logger.error("Startup failed: %s", exc)
        logger.error("Set SHEET_URL to the sheet web-app endpoint")
        sys.exit(1)

    try:
        app.run()
    except Exception as exc:  # noqa: BLE001
        # run() has already shut the app down in its finally block
        logger.exception("Unexpected error: %s", exc)
        sys.exit(1)


if __name__ == "__main__":
    main()
