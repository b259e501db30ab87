"""
Water-Level Monitor Package
"""
__version__ = "0.1.0"

# Make main components easily importable
from levelwatch.models import GatewayStatus, Reading, SensorSnapshot, SensorStatus
from levelwatch.aggregator import aggregate, irrigation_advice
from levelwatch.gateway import summarize
from levelwatch.normalizer import normalize
from levelwatch.signal_quality import SignalKind, classify
from levelwatch.timeparse import parse_date
from levelwatch.config import config

__all__ = [
    "GatewayStatus",
    "Reading",
    "SensorSnapshot",
    "SensorStatus",
    "SignalKind",
    "aggregate",
    "classify",
    "irrigation_advice",
    "normalize",
    "parse_date",
    "summarize",
    "config",
]
