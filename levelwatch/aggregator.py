"""
Per-sensor aggregation of normalized readings.

Rows are grouped by device id in first-seen order. For each device the
newest reading becomes the snapshot's current state and the newest
``history_limit`` readings form its chart history.

Readings with an unknown timestamp (0) sort before every real instant, so
they only become "current" when a device has no parseable timestamp at all,
and they are the first to fall out of a full history window.
"""
import logging
import math
from typing import Dict, Iterable, List, Mapping, Optional

from levelwatch.models import (
    HistoryPoint,
    IrrigationAdvice,
    RawRow,
    Reading,
    SensorSnapshot,
)
from levelwatch.normalizer import normalize

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 20

# Irrigation thresholds in cm of standing water
IRRIGATE_BELOW_CM = 5.0
STOP_AT_CM = 20.0


def resolve_name(device_id: str, nicknames: Optional[Mapping[str, str]] = None) -> str:
    """Friendly name for a device; unmapped ids pass through unchanged."""
    if not nicknames:
        return device_id
    return nicknames.get(device_id, device_id)


def latest_reading(readings: Iterable[Reading]) -> Optional[Reading]:
    """Reading with the greatest timestamp; on ties the later one in input order."""
    best: Optional[Reading] = None
    for reading in readings:
        if best is None or reading.timestamp >= best.timestamp:
            best = reading
    return best


def build_history(readings: List[Reading], limit: int = HISTORY_LIMIT) -> tuple:
    """
    The ``limit`` most recent (time, level) points, oldest first.

    The sort is stable, so readings sharing a timestamp keep input order.
    """
    if limit <= 0:
        return ()

    ordered = sorted(readings, key=lambda r: r.timestamp)
    return tuple(HistoryPoint(time=r.timestamp, level=r.level) for r in ordered[-limit:])


def group_by_device(readings: Iterable[Reading]) -> Dict[str, List[Reading]]:
    """Group readings by device id, preserving first-seen order of devices."""
    groups: Dict[str, List[Reading]] = {}
    for reading in readings:
        groups.setdefault(reading.device_id, []).append(reading)
    return groups


def aggregate(
    rows: Iterable[RawRow],
    nicknames: Optional[Mapping[str, str]] = None,
    history_limit: int = HISTORY_LIMIT,
) -> List[SensorSnapshot]:
    """
    Build one SensorSnapshot per distinct device id.

    No row is dropped: rows with malformed fields are normalized with
    sentinel values and still take part in current/history selection.

    Args:
        rows: Raw sheet rows in backend order
        nicknames: Device id -> display name
        history_limit: Maximum history points per sensor

    Returns:
        Snapshots in first-seen device order; empty for empty input
    """
    groups = group_by_device(normalize(row) for row in rows)

    snapshots: List[SensorSnapshot] = []
    for device_id, readings in groups.items():
        current = latest_reading(readings)

        snapshots.append(
            SensorSnapshot(
                id=device_id,
                name=resolve_name(device_id, nicknames),
                current_level=current.level,
                last_updated=current.timestamp,
                status=current.status,
                history=build_history(readings, history_limit),
                raw=current.raw,
            )
        )

    logger.debug(f"Aggregated {len(snapshots)} sensors")
    return snapshots


def irrigation_advice(level: float) -> IrrigationAdvice:
    """
    Field advice for a water level in cm.

    Below 5 cm the plot needs water, from 20 cm on irrigation should stop,
    anything in between is optimal.
    """
    if level is None or math.isnan(level):
        return IrrigationAdvice.UNKNOWN
    if level < IRRIGATE_BELOW_CM:
        return IrrigationAdvice.IRRIGATE
    if level >= STOP_AT_CM:
        return IrrigationAdvice.STOP
    return IrrigationAdvice.OPTIMAL
