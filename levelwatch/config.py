"""
Configuration management for the water-level monitor.
Loads settings from environment variables with sensible defaults.
"""
import os
import json
import logging
from typing import Dict, Optional
from pathlib import Path

logger = logging.getLogger(__name__)


class SheetConfig:
    """Spreadsheet web-app endpoint configuration."""

    def __init__(self):
        self.url: str = os.getenv("SHEET_URL", "")

        # Seconds to wait for the backend before giving up
        self.timeout: float = float(os.getenv("SHEET_TIMEOUT", "15"))

    def __repr__(self) -> str:
        """String representation (hides the query string, which may carry keys)."""
        url_preview = self.url.split("?", 1)[0] if self.url else "None"
        return f"SheetConfig(url='{url_preview}', timeout={self.timeout})"


class PollingConfig:
    """Refresh cadence and derivation limits."""

    def __init__(self):
        self.interval: float = float(os.getenv("POLL_INTERVAL", "60"))

        # Number of (time, level) points kept per sensor
        self.history_limit: int = int(os.getenv("HISTORY_LIMIT", "20"))

    def __repr__(self) -> str:
        return (
            f"PollingConfig(interval={self.interval}, "
            f"history_limit={self.history_limit})"
        )


class AppConfig:
    """Application-wide configuration."""

    def __init__(self):
        self.sheet = SheetConfig()
        self.polling = PollingConfig()
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO")

        # Timezone of naive timestamps written by the gateway
        self.timezone: str = os.getenv("SOURCE_TZ", "UTC")

        self.nicknames: Dict[str, str] = self._load_nicknames()

    def _load_nicknames(self) -> Dict[str, str]:
        """
        Load the device id -> friendly name map.

        DEVICE_NICKNAMES (inline JSON) wins over DEVICE_NICKNAMES_FILE.
        An unreadable or malformed map is logged and replaced by an empty one.

        Returns:
            Mapping of device id to display name
        """
        raw: Optional[str] = os.getenv("DEVICE_NICKNAMES")
        source = "DEVICE_NICKNAMES"

        if not raw:
            path = os.getenv("DEVICE_NICKNAMES_FILE")
            if not path:
                return {}

            nickname_file = Path(path)
            source = str(nickname_file)
            try:
                raw = nickname_file.read_text(encoding="utf-8")
            except OSError as e:
                logger.warning(f"Could not read nickname file {nickname_file}: {e}")
                return {}

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Invalid JSON in {source}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"{source} must be a JSON object, got {type(data).__name__}")
            return {}

        nicknames = {str(key): str(value) for key, value in data.items()}
        logger.info(f"Loaded {len(nicknames)} device nicknames from {source}")
        return nicknames

    def __repr__(self) -> str:
        return (
            f"AppConfig(sheet={self.sheet}, polling={self.polling}, "
            f"timezone='{self.timezone}', nicknames={len(self.nicknames)}, "
            f"log_level='{self.log_level}')"
        )


# Global config instance (loaded on import)
config = AppConfig()
