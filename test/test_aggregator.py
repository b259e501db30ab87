"""
Tests for per-sensor aggregation, history windowing and irrigation advice.
"""
import math

import pytest

from conftest import make_row
from levelwatch.aggregator import (
    HISTORY_LIMIT,
    aggregate,
    irrigation_advice,
    resolve_name,
)
from levelwatch.models import IrrigationAdvice, SensorStatus, find_sensor
from levelwatch.timeparse import UNKNOWN_TIME, parse_date


def at(minute: int) -> str:
    """ISO timestamp on 2024-05-01, ``minute`` minutes after 10:00 UTC."""
    hours, minutes = divmod(minute, 60)
    return f"2024-05-01T{10 + hours:02d}:{minutes:02d}:00Z"


# ---------------------------------------------------------------------------
# Basics
# ---------------------------------------------------------------------------

def test_empty_input_yields_empty_list():
    assert aggregate([]) == []


def test_single_row_scenario():
    rows = [make_row(device="A", level=3, received=at(0), status="Low")]

    [sensor] = aggregate(rows)

    assert sensor.id == "A"
    assert sensor.status is SensorStatus.LOW
    assert sensor.current_level == 3
    assert sensor.last_updated == parse_date(at(0))
    assert irrigation_advice(sensor.current_level) is IrrigationAdvice.IRRIGATE
    assert sensor.raw is rows[0]


def test_devices_keep_first_seen_order():
    rows = [
        make_row(device="C", received=at(0)),
        make_row(device="A", received=at(1)),
        make_row(device="C", received=at(2)),
        make_row(device="B", received=at(3)),
    ]
    assert [s.id for s in aggregate(rows)] == ["C", "A", "B"]


# ---------------------------------------------------------------------------
# Current reading selection
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("reverse", [False, True])
def test_newest_row_is_current_regardless_of_input_order(reverse):
    older = make_row(device="A", level=4, received=at(0), status="Low")
    newer = make_row(device="A", level=22, received=at(5), status="Excess")
    rows = [newer, older] if reverse else [older, newer]

    [sensor] = aggregate(rows)

    assert sensor.current_level == 22
    assert sensor.status is SensorStatus.EXCESS
    assert sensor.last_updated == parse_date(at(5))
    assert sensor.raw is newer


def test_timestamp_tie_last_row_wins():
    first = make_row(device="A", level=5, received=at(1))
    second = make_row(device="A", level=6, received=at(1))

    [sensor] = aggregate([first, second])

    assert sensor.current_level == 6
    assert sensor.raw is second


def test_unknown_timestamp_never_beats_a_real_one():
    real = make_row(device="A", level=8, received=at(0))
    broken = make_row(device="A", level=99, received="not a date")

    [sensor] = aggregate([real, broken])

    assert sensor.current_level == 8


def test_all_unknown_timestamps_last_row_is_current():
    rows = [
        make_row(device="A", level=1, received=""),
        make_row(device="A", level=2, received=None),
    ]

    [sensor] = aggregate(rows)

    assert sensor.current_level == 2
    assert sensor.last_updated == UNKNOWN_TIME


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

def test_history_is_capped_to_latest_points_in_ascending_order():
    count = HISTORY_LIMIT + 5
    # Feed newest first to prove ordering comes from timestamps
    rows = [make_row(device="A", level=i, received=at(i)) for i in reversed(range(count))]

    [sensor] = aggregate(rows)

    assert len(sensor.history) == HISTORY_LIMIT
    assert [p.level for p in sensor.history] == list(range(5, count))
    times = [p.time for p in sensor.history]
    assert times == sorted(times)


def test_history_limit_is_configurable():
    rows = [make_row(device="A", level=i, received=at(i)) for i in range(10)]

    [sensor] = aggregate(rows, history_limit=3)

    assert [p.level for p in sensor.history] == [7, 8, 9]
    assert aggregate(rows, history_limit=0)[0].history == ()


def test_unknown_timestamps_sort_earliest_in_history():
    rows = [
        make_row(device="A", level=1, received=at(3)),
        make_row(device="A", level=2, received="garbage"),
        make_row(device="A", level=3, received=at(1)),
    ]

    [sensor] = aggregate(rows)

    assert [(p.time == UNKNOWN_TIME, p.level) for p in sensor.history] == [
        (True, 2),
        (False, 3),
        (False, 1),
    ]


def test_unknown_timestamps_fall_out_of_full_window_first():
    rows = [make_row(device="A", level=-1, received="??")]
    rows += [make_row(device="A", level=i, received=at(i)) for i in range(3)]

    [sensor] = aggregate(rows, history_limit=3)

    assert [p.level for p in sensor.history] == [0, 1, 2]


def test_nan_levels_are_kept():
    rows = [
        make_row(device="A", level=5, received=at(0)),
        make_row(device="A", level="error", received=at(1)),
    ]

    [sensor] = aggregate(rows)

    assert math.isnan(sensor.current_level)
    assert len(sensor.history) == 2
    assert math.isnan(sensor.history[-1].level)


def test_malformed_rows_do_not_abort_other_devices():
    rows = [
        {"Device ID": "B"},
        make_row(device="A", level=12, received=at(0)),
        {},
    ]

    sensors = aggregate(rows)

    assert [s.id for s in sensors] == ["B", "A", ""]
    assert find_sensor(sensors, "A").current_level == 12
    assert find_sensor(sensors, "B").status is SensorStatus.UNKNOWN


# ---------------------------------------------------------------------------
# Names
# ---------------------------------------------------------------------------

def test_nickname_resolution():
    nicknames = {"TX-01": "North Paddy"}
    rows = [make_row(device="TX-01"), make_row(device="TX-02")]

    sensors = aggregate(rows, nicknames=nicknames)

    assert find_sensor(sensors, "TX-01").name == "North Paddy"
    assert find_sensor(sensors, "TX-02").name == "TX-02"


def test_resolve_name_without_map():
    assert resolve_name("TX-09") == "TX-09"
    assert resolve_name("TX-09", {}) == "TX-09"


# ---------------------------------------------------------------------------
# Irrigation advice
# ---------------------------------------------------------------------------

@pytest.mark.parametrize(
    "level, advice",
    [
        (0, IrrigationAdvice.IRRIGATE),
        (3, IrrigationAdvice.IRRIGATE),
        (4.99, IrrigationAdvice.IRRIGATE),
        (5, IrrigationAdvice.OPTIMAL),
        (12, IrrigationAdvice.OPTIMAL),
        (19.9, IrrigationAdvice.OPTIMAL),
        (20, IrrigationAdvice.STOP),
        (25, IrrigationAdvice.STOP),
        (float("nan"), IrrigationAdvice.UNKNOWN),
    ],
)
def test_irrigation_advice(level, advice):
    assert irrigation_advice(level) is advice
