import logging
from typing import Any, Dict, Optional

import serverless_wsgi
from flask import Flask

from sheets_proxy import main
from sheets_proxy.routes.api import SHEETS_ROUTE

app_logger = logging.getLogger(__name__)

_application: Optional[Flask] = None


def get_application() -> Flask:
    """Returns the WSGI app, building it on the first invocation of a cold container."""
    global _application
    if _application is None:
        _application = main.application if main.application is not None else main.create_app()
    return _application


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Netlify Functions / AWS Lambda entry point.
    The function is deployed at its own path (e.g. /.netlify/functions/sheets),
    so every invocation is dispatched to the /sheets route.
    """
    app_logger.debug(f"Invocation path: {event.get('path')}")
    event = dict(event, path=SHEETS_ROUTE)
    if "rawPath" in event:
        # HTTP API (payload v2) events route on rawPath instead
        event["rawPath"] = SHEETS_ROUTE
    return serverless_wsgi.handle_request(get_application(), event, context)
