import os
from unittest.mock import MagicMock

# Keep sheets_proxy.main from building the module-level app during collection
os.environ.setdefault("RUN_ENV", "TEST")

import pytest
import sheets_proxy.config as config_module


@pytest.fixture(scope="module")
def mock_settings():
    mock = MagicMock()
    mock.GOOGLE_API_KEY.get_secret_value.return_value = "test-api-key"
    mock.SHEETS_REQUEST_TIMEOUT_SECONDS = 5.0
    mock.SHEETS_RETRY_TOTAL = 0
    mock.SHEETS_BACKOFF_FACTOR = 0.5
    mock.SHEETS_STATUS_FORCELIST = [429, 500, 502, 503, 504]
    mock.STRICT_ERROR_STATUS = False
    mock.DEV_MODE = True
    return mock


@pytest.fixture
def mock_session():
    """A requests.Session stand-in; tests set get.return_value / side_effect."""
    return MagicMock()


def pytest_sessionstart():
    config_module._settings_instance = None
