"""Raw log view helpers: device filter options and per-device filtering."""
from typing import List, Sequence

from levelwatch.models import (
    COL_DEVICE_ID,
    COL_GSM_STRENGTH,
    COL_NETWORK,
    COL_WIFI_STRENGTH,
    RawRow,
)
from levelwatch.signal_quality import SignalDescriptor, SignalKind, describe, network_kind

ALL_DEVICES = "All"


def device_options(rows: Sequence[RawRow]) -> List[str]:
    """Sorted unique device ids present in the logs, blanks excluded."""
    devices = {str(row.get(COL_DEVICE_ID)) for row in rows if row.get(COL_DEVICE_ID)}
    return sorted(devices)


def filter_logs(rows: Sequence[RawRow], device: str = ALL_DEVICES) -> List[RawRow]:
    """Rows for one device (or every row for ``ALL_DEVICES``), order preserved."""
    if device == ALL_DEVICES:
        return list(rows)
    return [row for row in rows if str(row.get(COL_DEVICE_ID)) == device]


def signal_for_row(row: RawRow) -> SignalDescriptor:
    """The signal measurement matching the network the row was sent over."""
    kind = network_kind(row.get(COL_NETWORK))
    column = COL_WIFI_STRENGTH if kind is SignalKind.WIFI else COL_GSM_STRENGTH
    return describe(kind, row.get(column))
