import pytest
import logging

from sheets_proxy import config
from pydantic import ValidationError, SecretStr


# Fixture to clear the settings singleton before each test
@pytest.fixture(autouse=True)
def clear_settings_singleton(monkeypatch):
    """Clears the settings singleton instance around each test."""
    # Keep a developer's local .env out of these tests
    monkeypatch.setitem(config.Settings.model_config, "env_file", None)
    yield
    # Reset the singleton instance after the test
    config._settings_instance = None


# Fixture to set minimal required environment variables for tests
@pytest.fixture
def set_minimal_env(monkeypatch):
    """Sets minimal required environment variables for Settings to load."""
    monkeypatch.setenv("GOOGLE_API_KEY", "test-api-key")
    for name in ("SHEETS_REQUEST_TIMEOUT_SECONDS", "SHEETS_RETRY_TOTAL", "SHEETS_BACKOFF_FACTOR",
                 "SHEETS_STATUS_FORCELIST", "STRICT_ERROR_STATUS", "DEV_MODE"):
        monkeypatch.delenv(name, raising=False)


# --- ConfigError Tests ---

def test_config_error_exception():
    """Tests the custom ConfigError exception."""
    msg = "This is a config error"
    err = config.ConfigError(msg)
    assert isinstance(err, Exception)
    assert str(err) == msg


def test_cors_headers_constant():
    assert config.CORS_HEADERS == {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Allow-Methods": "GET",
    }


# --- Settings Class Tests ---

def test_settings_loads_from_env(monkeypatch, set_minimal_env):
    """Tests that Settings loads values from environment variables."""
    monkeypatch.setenv("SHEETS_REQUEST_TIMEOUT_SECONDS", "12.5")
    monkeypatch.setenv("SHEETS_RETRY_TOTAL", "4")
    monkeypatch.setenv("SHEETS_BACKOFF_FACTOR", "2.0")
    monkeypatch.setenv("SHEETS_STATUS_FORCELIST", "[429, 503]")
    monkeypatch.setenv("STRICT_ERROR_STATUS", "true")
    monkeypatch.setenv("DEV_MODE", "True")

    settings = config.Settings()

    assert isinstance(settings.GOOGLE_API_KEY, SecretStr)
    assert settings.GOOGLE_API_KEY.get_secret_value() == "test-api-key"
    assert settings.SHEETS_REQUEST_TIMEOUT_SECONDS == 12.5
    assert settings.SHEETS_RETRY_TOTAL == 4
    assert settings.SHEETS_BACKOFF_FACTOR == 2.0
    assert settings.SHEETS_STATUS_FORCELIST == [429, 503]
    assert settings.STRICT_ERROR_STATUS is True
    assert settings.DEV_MODE is True


def test_settings_uses_default_values(set_minimal_env):
    """Tests that Settings uses default values when env vars are not set."""
    settings = config.Settings()

    assert settings.SHEETS_REQUEST_TIMEOUT_SECONDS == 30.0
    assert settings.SHEETS_RETRY_TOTAL == 0
    assert settings.SHEETS_BACKOFF_FACTOR == 0.5
    assert settings.SHEETS_STATUS_FORCELIST == [429, 500, 502, 503, 504]
    assert settings.STRICT_ERROR_STATUS is False
    assert settings.DEV_MODE is False


def test_settings_env_names_are_case_insensitive(monkeypatch, set_minimal_env):
    monkeypatch.delenv("GOOGLE_API_KEY")
    monkeypatch.setenv("google_api_key", "lower-case-key")

    settings = config.Settings()

    assert settings.GOOGLE_API_KEY.get_secret_value() == "lower-case-key"


def test_settings_validation_error_missing_required(monkeypatch):
    """Tests that Settings raises ValidationError when the API key is missing."""
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    with pytest.raises(ValidationError):
        config.Settings()


def test_settings_validation_error_invalid_type(monkeypatch, set_minimal_env):
    """Tests that Settings raises ValidationError for invalid types."""
    monkeypatch.setenv("SHEETS_RETRY_TOTAL", "not_an_int")

    with pytest.raises(ValidationError):
        config.Settings()


def test_settings_repr_hides_api_key(set_minimal_env):
    settings = config.Settings()
    assert "test-api-key" not in repr(settings)


# --- get_settings Function Tests ---

def test_get_settings_loads_and_returns_settings(set_minimal_env):
    """Tests that get_settings loads and returns a Settings instance."""
    settings = config.get_settings()
    assert isinstance(settings, config.Settings)
    assert settings.GOOGLE_API_KEY.get_secret_value() == "test-api-key"


def test_get_settings_is_singleton(set_minimal_env):
    """Tests that get_settings returns the same instance on subsequent calls."""
    settings1 = config.get_settings()
    settings2 = config.get_settings()
    assert settings1 is settings2


def test_get_settings_raises_config_error_on_validation_error(monkeypatch):
    """Tests that get_settings wraps ValidationError in ConfigError."""
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    with pytest.raises(config.ConfigError) as exc_info:
        config.get_settings()

    # Check that the original ValidationError is the cause
    assert isinstance(exc_info.value.__cause__, ValidationError)


def test_get_settings_logs_info(set_minimal_env, caplog):
    """Tests that get_settings logs configuration information but never the key."""
    caplog.set_level(logging.INFO)

    config.get_settings()

    assert "Configuration loaded and validated successfully." in caplog.text
    assert "Sheets Request Timeout: 30.0" in caplog.text
    assert "Sheets Retry Total: 0" in caplog.text
    assert "Sheets Backoff Factor: 0.5" in caplog.text
    assert "Sheets Status Forcelist: [429, 500, 502, 503, 504]" in caplog.text
    assert "Strict Error Status (STRICT_ERROR_STATUS): False" in caplog.text
    assert "Development Mode (DEV_MODE): False" in caplog.text
    assert "test-api-key" not in caplog.text


def test_get_settings_logs_error_on_validation_error(monkeypatch, caplog):
    """Tests that get_settings logs an error on ValidationError."""
    caplog.set_level(logging.ERROR)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)

    with pytest.raises(config.ConfigError):
        config.get_settings()

    assert "Configuration validation error:" in caplog.text
