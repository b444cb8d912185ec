import logging
from typing import Any, Mapping, Tuple

from flask import Blueprint, request, jsonify, abort, Response
from pydantic import BaseModel, ValidationError, Field

from sheets_proxy.services import google_sheets_service
from sheets_proxy.services.errors import SheetsProxyError, ParamValidationError, InternalError
from sheets_proxy.services.records import value_ranges_to_object
from sheets_proxy.services.sheets import normalize_spreadsheet_id

# Set the API blueprint prefix to /api/v1
api_bp = Blueprint('api', __name__, url_prefix='/api/v1')
app_logger = logging.getLogger(__name__)

SHEETS_ROUTE: str = '/api/v1/sheets'


# Define Pydantic models for query parameters for automatic validation
class QueryParams(BaseModel):
    """
    Represents the expected query parameters for the /sheets endpoint.
    Both fields are required and must be non-empty; `sheet` is a
    comma-separated list of range names.
    """
    spreadsheetId: str = Field(..., min_length=1, description="Google Sheets spreadsheet ID or URL.")
    sheet: str = Field(..., min_length=1, description="Comma-separated range names, e.g. 'Sheet1,Sheet2!A1:C10'.")


# ─── Helper Functions ────────────────────────────────────────────────────────────

def parse_query_params(args: Mapping[str, Any]) -> QueryParams:
    """
    Validates the incoming query string.
    Raises ParamValidationError when spreadsheetId or sheet is missing or empty.
    """
    try:
        params = QueryParams.model_validate({
            "spreadsheetId": args.get("spreadsheetId"),
            "sheet": args.get("sheet"),
        })
    except ValidationError as e:
        app_logger.warning(f"Query parameter validation error for /sheets: {e.errors()}")
        raise ParamValidationError("spreadsheetId or sheet param is missing") from e

    return params.model_copy(update={"spreadsheetId": normalize_spreadsheet_id(params.spreadsheetId)})


@api_bp.route('/sheets', methods=['GET'])
def get_sheets() -> Tuple[Response, int]:
    """
    Fetches the requested ranges from Google Sheets and returns them as
    {sheet name: [row object, ...]}.
    """
    app_logger.info(
        f"GET {SHEETS_ROUTE} spreadsheetId={request.args.get('spreadsheetId')} sheet={request.args.get('sheet')}")

    # Validation happens before anything touches the network
    params = parse_query_params(request.args)

    # Check service initialization status
    if not google_sheets_service.initialized:
        app_logger.error("Google Sheets service not initialized.")
        # Use abort for standardized error response
        abort(500, description="Backend data source not available or configured incorrectly")

    try:
        result = google_sheets_service.batch_get(params.spreadsheetId, params.sheet)
        body = value_ranges_to_object(result)
    except SheetsProxyError:
        # Rendered by the application's SheetsProxyError handler
        raise
    except Exception as err:
        app_logger.exception(f"An unexpected error occurred in /sheets: {err}")
        raise InternalError("An unexpected error occurred while fetching sheet data") from err

    app_logger.info(f"Returning {len(body)} sheets for spreadsheet '{params.spreadsheetId}'.")
    return jsonify(body), 200
