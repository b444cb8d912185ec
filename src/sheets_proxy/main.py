import json
import logging
import os
import sys
from typing import Tuple, Optional

from flask import Flask, Response, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from sheets_proxy.config import get_settings, ConfigError, CORS_HEADERS
from sheets_proxy.routes.api import api_bp
from sheets_proxy.services import google_sheets_service
from sheets_proxy.services.errors import SheetsProxyError, SheetInitializationError

# ─── Setup Logging ───────────────────────────────────────────────────────────────
# Configure basic logging. On a serverless platform the runtime collects stderr,
# so a plain stream handler is enough.
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
app_logger = logging.getLogger(__name__)


# ─── Application Factory ─────────────────────────────────────────────────────────

application: Optional[Flask] = None

def create_app(config_object=None) -> Flask:
    """
    An application factory function to create the Flask app.
    The settings object is injected here and handed to the Google Sheets
    service; request handling never reads the environment.
    """
    if config_object is None:
        config_object = get_settings()
    app = Flask(__name__)

    # Keep header and sheet order from the spreadsheet in the JSON body
    app.json.sort_keys = False

    # Set Flask's logger level based on DEV_MODE from settings
    app.logger.setLevel(logging.DEBUG if config_object.DEV_MODE else logging.INFO)

    strict_status: bool = bool(config_object.STRICT_ERROR_STATUS)

    # Registered before CORS(app) so it runs after flask-cors and only fills
    # in the headers flask-cors leaves out on non-preflight responses
    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        for header, value in CORS_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    CORS(app, origins="*", send_wildcard=True, allow_headers=["Content-Type"], methods=["GET"])

    # Register the API blueprint
    app.register_blueprint(api_bp)

    # ─── Custom Error Handlers ───────────────────────────────────────────────────────
    # Define error handlers to return standardized JSON responses

    @app.errorhandler(HTTPException)
    def handle_http_exception(http_exc: HTTPException) -> Tuple[Response, int]:
        """Return JSON instead of HTML for HTTP errors."""
        # start with the correct headers and status code from the error
        response = http_exc.get_response()
        # replace the body with json
        response.data = json.dumps({
            "error": http_exc.description or http_exc.name,  # Use description if available, otherwise name
            "kind": "HTTPException",
            "code": http_exc.code
        })
        response.content_type = "application/json"
        app_logger.error(f"HTTP Exception {http_exc.code}: {http_exc.description}")
        # Explicitly return the response and status code as a tuple
        return response, http_exc.code

    @app.errorhandler(SheetsProxyError)
    def handle_sheets_proxy_error(err: SheetsProxyError) -> Tuple[Response, int]:
        """Render every request failure as a structured JSON payload."""
        status_code = err.get_status_code(strict_status)
        app_logger.error(f"{err.kind} ({status_code}): {err.message}")
        return jsonify(err.to_dict(strict_status)), status_code

    # Initialize the Google Sheets service here, catching potential errors
    # This ensures the service is initialized when the app is created by the factory
    try:
        google_sheets_service.initialize(config_object)
    except (ConfigError, SheetInitializationError) as config_exc:
        # Log the critical error but don't exit here.
        # The caller of create_app should handle the exception (e.g., in __main__).
        app_logger.critical(f"Application failed to initialize Google Sheets service: {config_exc}")
        # Re-raise the exception to signal initialization failure
        raise config_exc

    return app  # Return the created Flask app instance


# ─── Global App Instance for WSGI servers and 'flask run' ───────────────────────
# This line calls the factory to create the app instance and makes it available
# at the module level, which is required by tools like 'flask run' and WSGI servers.
if os.environ.get("RUN_ENV") != "TEST":
    try:
        application = create_app()
    except (ConfigError, SheetInitializationError) as e:
        # If initialization fails here, log the error (already done in create_app)
        # and exit the process gracefully.
        sys.exit(1)

# ─── APP LAUNCH (for direct execution) ──────────────────────────────────────────
if __name__ == '__main__':
    try:
        host = "0.0.0.0"
        port = int(os.environ.get("PORT", 8080))
        settings = get_settings()
        application.run(host=host, port=port, debug=settings.DEV_MODE)
    except ConfigError as e:
        app_logger.error(f"Startup failed: {e}")
        sys.exit(1)
