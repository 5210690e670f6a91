"""JSON error responses for the whole app.

Unhandled exceptions are already logged by Flask before the 500 handler runs.
"""

from werkzeug.exceptions import HTTPException, InternalServerError

from . import bp
from .helpers import json_error


@bp.app_errorhandler(InternalServerError)
def internal_error(e):
    return json_error("Internal server error", 500)


@bp.app_errorhandler(HTTPException)
def http_error(e):
    return json_error(e.name, e.code or 500)
