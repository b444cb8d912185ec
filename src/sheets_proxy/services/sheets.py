import logging
from typing import Any, List, Optional
from urllib.parse import quote

import requests
from gspread.exceptions import NoValidUrlKeyFound
from gspread.utils import extract_id_from_url
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from sheets_proxy.config import SHEETS_API_BASE_URL, REQUESTED_MAJOR_DIMENSION, ConfigError
from sheets_proxy.services.errors import (
    ParamValidationError,
    SheetInitializationError,
    UpstreamError,
    UpstreamTimeoutError,
)
from sheets_proxy.services.records import BatchGetResult

app_logger = logging.getLogger(__name__)

# Characters kept literal in a range name; everything else is percent-encoded
RANGE_SAFE_CHARS: str = "!:'"


# ─── URL Construction ────────────────────────────────────────────────────────────

def split_ranges(sheet: str) -> List[str]:
    """Splits the comma-separated `sheet` parameter into range names, keeping order."""
    return sheet.split(",")


def get_range_params(sheet: str) -> str:
    """
    Builds the repeated `ranges` query parameters for values:batchGet.
    'A,B,C' -> 'ranges=A&ranges=B&ranges=C&'
    """
    return "".join(f"ranges={quote(name, safe=RANGE_SAFE_CHARS)}&" for name in split_ranges(sheet))


def normalize_spreadsheet_id(value: str) -> str:
    """Accepts either a bare spreadsheet ID or a full Google Sheets URL."""
    if not value.lower().startswith(("http://", "https://")):
        return value
    try:
        return extract_id_from_url(value)
    except NoValidUrlKeyFound as err:
        app_logger.warning(f"No spreadsheet ID found in URL: '{value}'")
        raise ParamValidationError(f"No spreadsheet ID found in URL: {value}") from err


def _upstream_error_message(resp: requests.Response) -> str:
    """Extracts Google's error message from a non-2xx response, falling back to the reason."""
    try:
        payload: Any = resp.json()
        message = payload["error"]["message"]
        if message:
            return str(message)
    except (ValueError, KeyError, TypeError):
        pass
    return resp.reason or "Unknown error"


# Define the GoogleSheetsService class
class GoogleSheetsService:
    def __init__(self, session: Optional[requests.Session] = None):
        """
        Initializes the GoogleSheetsService.
        The API key and transport settings are injected in initialize().
        """
        # Reused across requests for connection pooling only
        self.session: requests.Session = session or requests.Session()
        self.timeout: float = 30.0
        self.initialized: bool = False  # Flag to indicate successful initialization
        self._api_key: Optional[str] = None

    def initialize(self, settings) -> None:
        """
        Stores the API key and configures the HTTP session from the given settings.
        Raises ConfigError or SheetInitializationError on failure.
        """
        app_logger.info("Attempting to initialize Google Sheets service...")

        # Reset state before attempting initialization
        self._api_key = None
        self.initialized = False

        if not settings.GOOGLE_API_KEY or not settings.GOOGLE_API_KEY.get_secret_value().strip():
            msg = "Google API key is not set."
            app_logger.error(msg)
            raise ConfigError(msg)

        try:
            self.timeout = float(settings.SHEETS_REQUEST_TIMEOUT_SECONDS)
            adapter = HTTPAdapter(max_retries=self._get_retry_strategy(settings))
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)
        except (TypeError, ValueError) as err:
            msg = f"Invalid Google Sheets transport settings: {err}"
            app_logger.error(msg)
            raise SheetInitializationError(msg) from err

        self._api_key = settings.GOOGLE_API_KEY.get_secret_value()
        self.initialized = True
        app_logger.info("Google Sheets service initialization completed successfully.")

    @staticmethod
    def _get_retry_strategy(settings) -> Retry:
        strategy = Retry(
            total=settings.SHEETS_RETRY_TOTAL,
            backoff_factor=settings.SHEETS_BACKOFF_FACTOR,
            status_forcelist=settings.SHEETS_STATUS_FORCELIST,
            allowed_methods=["GET"],
            # Hand the last upstream response back so its error message survives
            raise_on_status=False,
        )
        app_logger.info(
            f"Sheets retry strategy configured: Total={settings.SHEETS_RETRY_TOTAL}, "
            f"Backoff={settings.SHEETS_BACKOFF_FACTOR}, Statuses={settings.SHEETS_STATUS_FORCELIST}")
        return strategy

    def build_batch_get_url(self, spreadsheet_id: str, sheet: str) -> str:
        """Returns the full values:batchGet URL, API key included."""
        return (
            f"{SHEETS_API_BASE_URL}/{quote(spreadsheet_id, safe='')}/values:batchGet"
            f"?{get_range_params(sheet)}key={quote(self._api_key or '', safe='')}"
            f"&majorDimension={REQUESTED_MAJOR_DIMENSION}"
        )

    def batch_get(self, spreadsheet_id: str, sheet: str) -> BatchGetResult:
        """
        Issues the single values:batchGet request for the given ranges.
        Raises UpstreamError (or UpstreamTimeoutError) for transport, status and
        decoding failures, SheetDataError for a body without valueRanges.
        """
        if not self.initialized:
            msg = "Cannot fetch sheet data: Google Sheets service not initialized."
            app_logger.error(msg)
            raise SheetInitializationError(msg)

        url = self.build_batch_get_url(spreadsheet_id, sheet)
        # Log without the URL so the API key never reaches the logs
        app_logger.info(f"Fetching ranges {split_ranges(sheet)} from spreadsheet '{spreadsheet_id}'.")

        try:
            resp: requests.Response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as err:
            msg = f"Google Sheets API request timed out for spreadsheet '{spreadsheet_id}'."
            app_logger.error(msg)
            raise UpstreamTimeoutError(msg) from err
        except requests.exceptions.RequestException as err:
            msg = f"Google Sheets API request error for spreadsheet '{spreadsheet_id}': {type(err).__name__}"
            app_logger.error(msg)
            raise UpstreamError(msg) from err

        if not resp.ok:
            msg = f"Google Sheets API returned {resp.status_code}: {_upstream_error_message(resp)}"
            app_logger.error(msg)
            raise UpstreamError(msg, upstream_status=resp.status_code)

        try:
            payload: Any = resp.json()
        except ValueError as err:
            msg = f"Failed to decode JSON response from Google Sheets for spreadsheet '{spreadsheet_id}'."
            app_logger.error(msg)
            raise UpstreamError(msg, upstream_status=resp.status_code) from err

        result = BatchGetResult.from_dict(payload)
        app_logger.info(f"Received {len(result.value_ranges)} value ranges for spreadsheet '{spreadsheet_id}'.")
        return result
