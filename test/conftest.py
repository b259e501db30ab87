"""
Shared fixtures: raw sheet rows shaped like the gateway's Apps Script output.
"""
from typing import Any, Dict

import pytest


def make_row(
    device: Any = "TX-01",
    level: Any = 10,
    received: Any = "2024-05-01T10:00:00Z",
    status: Any = "Good",
    **overrides: Any,
) -> Dict[str, Any]:
    """Build one raw row; keyword overrides use the sheet's column names."""
    row = {
        "Gateway Received Time": received,
        "Device ID": device,
        "Transmitter Data": f"{device},{level}",
        "Water Level (cm)": level,
        "Status": status,
        "Network": "WiFi",
        "Batch Upload Time": "2024-05-01T09:55:00Z",
        "SIM Operator": "Airtel",
        "WiFi Strength (dBm)": -58,
        "GSM Strength (RSSI)": 18,
        "SD Free (MB)": 14820,
    }
    row.update(overrides)
    return row


@pytest.fixture
def row_factory():
    """Factory fixture returning make_row."""
    return make_row
