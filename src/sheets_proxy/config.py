import logging
from typing import Dict, List

from pydantic import Field, ValidationError, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Set up logging for this module
app_logger = logging.getLogger(__name__)


# --- Custom Exception for Configuration Errors ───────────────────────────────────

class ConfigError(Exception):
    """Custom exception raised for configuration errors."""
    pass


# --- Application Constants ─────────────────────────────────────────────────────
# These are fixed application values, not loaded from environment variables.
SHEETS_API_BASE_URL: str = 'https://sheets.googleapis.com/v4/spreadsheets'

# Data is always requested row-major; COLUMNS only shows up if upstream overrides it
REQUESTED_MAJOR_DIMENSION: str = 'ROWS'

# Sent on every response, including errors and preflight
CORS_HEADERS: Dict[str, str] = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'GET',
}


# --- Pydantic Settings (Environment Dependent) ───────────────────────────────────

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    """

    # Google Sheets API credential
    GOOGLE_API_KEY: SecretStr = Field(..., description="API key used for every Google Sheets request.")

    # Outbound request configuration
    SHEETS_REQUEST_TIMEOUT_SECONDS: float = Field(
        30.0, description="Timeout for a single Google Sheets API request in seconds."
    )
    SHEETS_RETRY_TOTAL: int = Field(
        0, description="Total number of retries for failed Google Sheets API requests."
    )
    SHEETS_BACKOFF_FACTOR: float = Field(
        0.5, description="Backoff factor for exponential delay between retries."
    )
    SHEETS_STATUS_FORCELIST: List[int] = Field(
        [429, 500, 502, 503, 504],
        description="HTTP status codes that should trigger a retry."
    )

    # Error reporting
    STRICT_ERROR_STATUS: bool = Field(
        False, description="Report upstream failures as 502/504 instead of 400."
    )

    # Development Mode
    DEV_MODE: bool = Field(
        False, description="Enable development mode (e.g., Flask debug server)."
    )

    # Pydantic config
    model_config = SettingsConfigDict(
        env_file='.env',  # You can override this in your test config
        env_file_encoding='utf-8',
        case_sensitive=False
    )


# --- Lazy Settings Loader ─────────────────────────────────────────────────────

_settings_instance = None

def get_settings() -> Settings:
    global _settings_instance

    if _settings_instance is not None:
        return _settings_instance

    try:
        _settings_instance = Settings()
        app_logger.info("Configuration loaded and validated successfully.")
    except ValidationError as e:
        app_logger.error(f"Configuration validation error: {e}")
        raise ConfigError("Application failed to start due to configuration errors.") from e

    # Log safe config values
    app_logger.info(f"Sheets Request Timeout: {_settings_instance.SHEETS_REQUEST_TIMEOUT_SECONDS}")
    app_logger.info(f"Sheets Retry Total: {_settings_instance.SHEETS_RETRY_TOTAL}")
    app_logger.info(f"Sheets Backoff Factor: {_settings_instance.SHEETS_BACKOFF_FACTOR}")
    app_logger.info(f"Sheets Status Forcelist: {_settings_instance.SHEETS_STATUS_FORCELIST}")
    app_logger.info(f"Strict Error Status (STRICT_ERROR_STATUS): {_settings_instance.STRICT_ERROR_STATUS}")
    app_logger.info(f"Development Mode (DEV_MODE): {_settings_instance.DEV_MODE}")

    return _settings_instance
