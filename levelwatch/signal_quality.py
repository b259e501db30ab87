"""
Signal-quality classification for gateway network measurements.

WiFi strength arrives in dBm (negative, closer to zero is better) and GSM
strength as a CSQ index (0-31, 99 = no reading). Both are reduced to a
0-4 tier for display.
"""
import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

import pandas as pd


class SignalKind(str, Enum):
    WIFI = "WiFi"
    GSM = "GSM"


UNITS = {
    SignalKind.WIFI: "dBm",
    SignalKind.GSM: "CSQ",
}

# CSQ value reported by modems that have no measurement
GSM_UNKNOWN = 99

_LEADING_INT_RE = re.compile(r"^\s*([-+]?\d+)")


def _leading_int(value: Any) -> Optional[int]:
    """Integer prefix of ``value`` ("-67 dBm" -> -67, "18.7" -> 18), or None."""
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        if pd.isna(value) or not math.isfinite(value):
            return None
        return int(value)

    match = _LEADING_INT_RE.match(str(value))
    if not match:
        return None
    return int(match.group(1))


def _wifi_tier(dbm: int) -> int:
    if dbm >= -50:
        return 4
    if dbm >= -60:
        return 3
    if dbm >= -70:
        return 2
    if dbm >= -80:
        return 1
    return 0


def _gsm_tier(csq: int) -> int:
    # 99 is numerically >= 20 but means "no reading"
    if csq == GSM_UNKNOWN:
        return 0
    if csq >= 20:
        return 4
    if csq >= 15:
        return 3
    if csq >= 10:
        return 2
    if csq >= 1:
        return 1
    return 0


def classify(kind: SignalKind, raw_value: Any) -> int:
    """
    Map a raw network-strength measurement to a 0-4 tier.

    Args:
        kind: WiFi (dBm) or GSM (CSQ)
        raw_value: Number or numeric-looking text from the source row

    Returns:
        Tier from 0 (no/bad signal) to 4 (excellent); 0 for non-numeric input
    """
    value = _leading_int(raw_value)
    if value is None:
        return 0

    if SignalKind(kind) is SignalKind.WIFI:
        return _wifi_tier(value)
    return _gsm_tier(value)


def severity(tier: int) -> str:
    """Colour band of a tier: none, poor, fair or good."""
    if tier <= 0:
        return "none"
    if tier < 2:
        return "poor"
    if tier < 3:
        return "fair"
    return "good"


def network_kind(network: Any) -> SignalKind:
    """The gateway reports "WiFi" when on WiFi; every other value is cellular."""
    return SignalKind.WIFI if network == SignalKind.WIFI.value else SignalKind.GSM


@dataclass(frozen=True)
class SignalDescriptor:
    """Raw signal value as reported, with its unit. The tier is derived."""

    kind: SignalKind
    value: Any

    @property
    def unit(self) -> str:
        return UNITS[self.kind]

    @property
    def tier(self) -> int:
        return classify(self.kind, self.value)

    @property
    def severity(self) -> str:
        return severity(self.tier)

    def __str__(self) -> str:
        if self.value is None or self.value == "":
            return "Unknown"
        return f"{self.value} {self.unit}"


def describe(kind: SignalKind, raw_value: Any) -> SignalDescriptor:
    """Wrap a raw measurement for display."""
    return SignalDescriptor(kind=SignalKind(kind), value=raw_value)
