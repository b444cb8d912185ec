from typing import Any, Dict, Optional


# ─── Custom Exceptions ───────────────────────────────────────────────────────────

class SheetsProxyError(Exception):
    """
    Base exception for every failure the /sheets endpoint reports to a caller.

    Each subclass carries a `kind` (exposed in the JSON payload) and two status
    codes: the uniform 400 used by default and the status used when
    STRICT_ERROR_STATUS is enabled.
    """
    kind: str = "SheetsProxyError"
    status_code: int = 400
    strict_status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def get_status_code(self, strict: bool = False) -> int:
        return self.strict_status_code if strict else self.status_code

    def to_dict(self, strict: bool = False) -> Dict[str, Any]:
        """Structured error payload; never relies on default exception serialization."""
        return {
            "error": self.message,
            "kind": self.kind,
            "code": self.get_status_code(strict),
        }


class ParamValidationError(SheetsProxyError):
    """Raised when a required query parameter is missing or empty."""
    kind = "ValidationError"


class NoDataError(SheetsProxyError):
    """Raised when upstream returned no values for a requested range."""
    kind = "NoDataError"


class SheetDataError(SheetsProxyError):
    """Raised when the upstream JSON does not have the batchGet shape."""
    kind = "SheetDataError"
    strict_status_code = 502


class UpstreamError(SheetsProxyError):
    """Raised for transport failures, non-2xx responses and non-JSON bodies."""
    kind = "UpstreamError"
    strict_status_code = 502

    def __init__(self, message: str, upstream_status: Optional[int] = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class UpstreamTimeoutError(UpstreamError):
    """Raised when the Google Sheets API did not answer in time."""
    kind = "UpstreamTimeoutError"
    strict_status_code = 504


class InternalError(SheetsProxyError):
    """Wraps anything unexpected raised while serving a request."""
    kind = "InternalError"
    strict_status_code = 500


class SheetInitializationError(Exception):
    """Exception raised for errors during Google Sheets service initialization."""
    pass
