from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional, Tuple

from levelwatch.signal_quality import SignalDescriptor

# One spreadsheet row as delivered by the backend. Read-only, loosely typed.
RawRow = Mapping[str, Any]

# Column names written by the gateway's Apps Script
COL_RECEIVED_TIME = "Gateway Received Time"
COL_DEVICE_ID = "Device ID"
COL_TRANSMITTER_DATA = "Transmitter Data"
COL_WATER_LEVEL = "Water Level (cm)"
COL_STATUS = "Status"
COL_NETWORK = "Network"
COL_BATCH_UPLOAD_TIME = "Batch Upload Time"
COL_SIM_OPERATOR = "SIM Operator"
COL_WIFI_STRENGTH = "WiFi Strength (dBm)"
COL_GSM_STRENGTH = "GSM Strength (RSSI)"
COL_SD_FREE = "SD Free (MB)"


class SensorStatus(str, Enum):
    LOW = "Low"
    GOOD = "Good"
    EXCESS = "Excess"
    FLOOD_ALERT = "Flood Alert"
    UNKNOWN = "Unknown"


class IrrigationAdvice(str, Enum):
    IRRIGATE = "Irrigate the plot"
    OPTIMAL = "Optimal level"
    STOP = "Stop irrigating the plot"
    UNKNOWN = "No reading"


@dataclass(frozen=True)
class Reading:
    """
    One typed telemetry reading decoded from a RawRow.
    ``timestamp`` is epoch ms (0 = unknown); ``level`` may be NaN.
    """
    device_id: str
    timestamp: int
    level: float
    status: SensorStatus
    raw: RawRow = field(repr=False, compare=False)


@dataclass(frozen=True)
class HistoryPoint:
    time: int
    level: float


@dataclass(frozen=True)
class SensorSnapshot:
    """
    Latest known state of one sensor device, rebuilt on every refresh.
    History is chronological, oldest first.
    """
    id: str
    name: str
    current_level: float
    last_updated: int
    status: SensorStatus
    history: Tuple[HistoryPoint, ...]
    raw: RawRow = field(repr=False, compare=False)

    def __repr__(self):
        return (f"[{self.name}] level={self.current_level} "
                f"status={self.status.value} points={len(self.history)}")


@dataclass(frozen=True)
class GatewayStatus:
    """Health of the gateway, taken from the newest row across all devices."""
    network: str
    sim_operator: str
    wifi_signal: SignalDescriptor
    gsm_signal: SignalDescriptor
    sd_free: str
    last_batch_upload: int
    received_at: int


@dataclass(frozen=True)
class DashboardState:
    """Everything the presentation layer needs after one refresh."""
    sensors: Tuple[SensorSnapshot, ...] = ()
    gateway: Optional[GatewayStatus] = None
    logs: Tuple[RawRow, ...] = ()
    selected_id: Optional[str] = None
    error: Optional[str] = None
    last_refreshed: int = 0

    @property
    def selected_sensor(self) -> Optional[SensorSnapshot]:
        if self.selected_id is None:
            return None
        return find_sensor(self.sensors, self.selected_id)


def find_sensor(sensors, sensor_id: str) -> Optional[SensorSnapshot]:
    """Look up a snapshot by device id."""
    for sensor in sensors:
        if sensor.id == sensor_id:
            return sensor
    return None
