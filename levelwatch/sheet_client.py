"""
HTTP client for the spreadsheet web-app that collects gateway uploads.
Fetches the full row set and returns it as a list of raw row mappings.
"""
import logging
from typing import Any, List

import requests

from levelwatch.config import SheetConfig
from levelwatch.models import RawRow

logger = logging.getLogger(__name__)

# Message used when the transport gives us nothing better to show
GENERIC_FETCH_ERROR = "Failed to fetch"

CONNECTION_HELP = (
    "Connection failed. Please ensure your Google Sheet is active and accessible."
)


class FetchError(RuntimeError):
    """Raised when rows cannot be fetched or decoded from the sheet backend."""


def user_message(exc: BaseException) -> str:
    """
    Turn a fetch failure into text for the user.

    Backend-specific messages are shown as they are; the generic sentinel
    or an empty message is replaced by connection help.
    """
    message = str(exc).strip()
    if not message or message == GENERIC_FETCH_ERROR:
        return CONNECTION_HELP
    return message


class SheetClient:
    """
    Thin wrapper around the sheet web-app's JSON endpoint.
    """

    def __init__(self, config: SheetConfig, session: requests.Session | None = None):
        """
        Initialize the sheet client.

        Args:
            config: Endpoint configuration
            session: Optional requests session (a new one is created if omitted)
        """
        self.config = config
        self._session = session or requests.Session()

        logger.info(f"Initializing sheet client for {config}")

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()
        logger.info("Sheet client session closed")

    def fetch_rows(self) -> List[RawRow]:
        """
        Fetch every row currently in the sheet.

        Returns:
            List of raw rows in sheet order

        Raises:
            FetchError: On transport failure, non-2xx status, backend error
                payload or an unexpected response shape
        """
        if not self.config.url:
            raise FetchError("SHEET_URL is not configured")

        try:
            response = self._session.get(self.config.url, timeout=self.config.timeout)
        except requests.RequestException as e:
            logger.error(f"Sheet request failed: {e}")
            raise FetchError(GENERIC_FETCH_ERROR) from e

        if not response.ok:
            logger.error(f"Sheet backend returned HTTP {response.status_code}")
            raise FetchError(f"Sheet backend returned HTTP {response.status_code}")

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from sheet backend: {e}")
            logger.debug(f"Raw body: {response.text[:200]}")
            raise FetchError("Sheet backend returned invalid JSON") from e

        rows = self._extract_rows(payload)
        logger.debug(f"Fetched {len(rows)} rows from sheet")
        return rows

    @staticmethod
    def _extract_rows(payload: Any) -> List[RawRow]:
        """
        Pull the row list out of a decoded payload.

        Accepted shapes: a bare list of objects, or an object carrying the
        list under "data" or "rows". An object with an "error" key is the
        backend reporting a failure.
        """
        if isinstance(payload, dict):
            if payload.get("error"):
                raise FetchError(str(payload["error"]))
            for key in ("data", "rows"):
                if isinstance(payload.get(key), list):
                    payload = payload[key]
                    break

        if not isinstance(payload, list):
            raise FetchError(f"Unexpected response shape: {type(payload).__name__}")

        rows = [row for row in payload if isinstance(row, dict)]
        skipped = len(payload) - len(rows)
        if skipped:
            logger.warning(f"Ignored {skipped} non-object entries in sheet response")
        return rows
