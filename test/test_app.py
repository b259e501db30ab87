"""
Tests for the monitor application wiring (no network, no background loop).
"""
import logging

import pytest

from conftest import make_row
from levelwatch import main as main_module
from levelwatch.dashboard import Dashboard
from levelwatch.main import MonitorApp
from levelwatch.sheet_client import FetchError


@pytest.fixture
def app():
    return MonitorApp()


def test_setup_requires_sheet_url(app, monkeypatch):
    monkeypatch.setattr(main_module.config.sheet, "url", "")

    with pytest.raises(ValueError, match="SHEET_URL"):
        app.setup()


def test_refresh_callback_reports_sensors(app, caplog):
    rows = [
        make_row(device="A", level=3, status="Low"),
        make_row(device="B", level="n/a", status="Good"),
    ]
    app.dashboard = Dashboard(fetch_rows=lambda: rows, nicknames={"A": "North Plot"})

    with caplog.at_level(logging.INFO):
        app._on_refresh_due("manual")

    assert "North Plot" in caplog.text
    assert "Irrigate the plot" in caplog.text
    assert "n/a" in caplog.text
    assert "Gateway | WiFi (Airtel)" in caplog.text


def test_refresh_callback_reports_errors(app, caplog):
    def failing():
        raise FetchError("Failed to fetch")

    app.dashboard = Dashboard(fetch_rows=failing)

    with caplog.at_level(logging.INFO):
        app._on_refresh_due("timer")

    assert "Connection failed" in caplog.text
    assert "Waiting for data" in caplog.text


def test_refresh_callback_without_dashboard(app, caplog):
    app._on_refresh_due("timer")
    assert "Dashboard not initialized" in caplog.text


def test_shutdown_is_safe_before_setup(app):
    app.shutdown()
    assert app.shutdown_requested


def test_main_shuts_down_once_on_unexpected_error(monkeypatch, caplog):
    def boom(seconds):
        raise RuntimeError("loop exploded")

    monkeypatch.setattr(main_module, "configure_logging", lambda: None)
    monkeypatch.setattr(main_module.signal, "signal", lambda *args: None)
    monkeypatch.setattr(MonitorApp, "setup", lambda self: None)
    monkeypatch.setattr(main_module.time, "sleep", boom)

    with caplog.at_level(logging.INFO), pytest.raises(SystemExit) as excinfo:
        main_module.main()

    assert excinfo.value.code == 1
    assert "Unexpected error: loop exploded" in caplog.text
    assert caplog.text.count("Shutting down Water-Level Monitor") == 1
