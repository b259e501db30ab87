"""
Gateway health summary.

The gateway writes its own network state into every row it forwards, so the
freshest row across all devices describes the gateway as it is now.
"""
import logging
from typing import Any, Optional, Sequence

from levelwatch.models import (
    COL_BATCH_UPLOAD_TIME,
    COL_GSM_STRENGTH,
    COL_NETWORK,
    COL_RECEIVED_TIME,
    COL_SD_FREE,
    COL_SIM_OPERATOR,
    COL_WIFI_STRENGTH,
    GatewayStatus,
    RawRow,
)
from levelwatch.signal_quality import SignalKind, describe
from levelwatch.timeparse import parse_date

logger = logging.getLogger(__name__)

UNKNOWN_TEXT = "Unknown"


def _text(value: Any) -> str:
    if value is None:
        return UNKNOWN_TEXT
    text = str(value).strip()
    return text or UNKNOWN_TEXT


def latest_row(rows: Sequence[RawRow]) -> Optional[RawRow]:
    """Row with the newest received time; on ties the later one in input order."""
    best: Optional[RawRow] = None
    best_time = -1
    for row in rows:
        received = parse_date(row.get(COL_RECEIVED_TIME))
        if received >= best_time:
            best, best_time = row, received
    return best


def summarize(rows: Sequence[RawRow]) -> Optional[GatewayStatus]:
    """
    Reduce the full row set to the gateway's latest health snapshot.

    Args:
        rows: All raw rows, any device

    Returns:
        GatewayStatus, or None for an empty row set
    """
    row = latest_row(rows)
    if row is None:
        return None

    status = GatewayStatus(
        network=_text(row.get(COL_NETWORK)),
        sim_operator=_text(row.get(COL_SIM_OPERATOR)),
        wifi_signal=describe(SignalKind.WIFI, row.get(COL_WIFI_STRENGTH)),
        gsm_signal=describe(SignalKind.GSM, row.get(COL_GSM_STRENGTH)),
        sd_free=_text(row.get(COL_SD_FREE)),
        last_batch_upload=parse_date(row.get(COL_BATCH_UPLOAD_TIME)),
        received_at=parse_date(row.get(COL_RECEIVED_TIME)),
    )

    logger.debug(f"Gateway status: {status}")
    return status
