"""
Decoding of raw spreadsheet rows into typed readings.

This is the only place that reads RawRow keys for sensor data; everything
downstream works on Reading objects.
"""
from typing import Any

import pandas as pd

from levelwatch.models import (
    COL_DEVICE_ID,
    COL_RECEIVED_TIME,
    COL_STATUS,
    COL_WATER_LEVEL,
    RawRow,
    Reading,
    SensorStatus,
)
from levelwatch.timeparse import parse_date

_KNOWN_STATUSES = {
    status.value: status for status in SensorStatus if status is not SensorStatus.UNKNOWN
}


def coerce_level(value: Any) -> float:
    """
    Numeric coercion of a level cell. Anything non-numeric becomes NaN,
    never 0, so a missing reading is not mistaken for an empty plot.
    """
    if value is None or isinstance(value, bool):
        return float("nan")
    if isinstance(value, str) and not value.strip():
        return float("nan")

    try:
        number = pd.to_numeric(value, errors="coerce")
        return float(number)
    except (TypeError, ValueError):
        return float("nan")


def coerce_status(value: Any) -> SensorStatus:
    """Exact match against the closed status set; everything else is Unknown."""
    if not isinstance(value, str):
        return SensorStatus.UNKNOWN
    return _KNOWN_STATUSES.get(value, SensorStatus.UNKNOWN)


def normalize(row: RawRow) -> Reading:
    """
    Convert one raw sheet row into a Reading.

    Args:
        row: Raw row mapping; missing keys are tolerated

    Returns:
        Reading with sentinel values (id "", time 0, level NaN, Unknown
        status) for anything that could not be decoded
    """
    device_id = row.get(COL_DEVICE_ID)

    return Reading(
        device_id="" if device_id is None else str(device_id),
        timestamp=parse_date(row.get(COL_RECEIVED_TIME)),
        level=coerce_level(row.get(COL_WATER_LEVEL)),
        status=coerce_status(row.get(COL_STATUS)),
        raw=row,
    )
