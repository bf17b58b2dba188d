from flask import jsonify, current_app, abort
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

from services.result import Err


def error_response(message: str, status: int):
    return jsonify({"success": False, "message": message}), status


def success_response(data, message: str, status: int = 200):
    return jsonify({"success": True, "data": data, "message": message}), status


def unwrap(result):
    """Return the value of an Ok result, or abort with the Err's status and message."""
    if isinstance(result, Err):
        abort(result.status, description=result.message)
    return result.value


def require_fields(payload: dict, names, message: str = "All fields required"):
    """Abort with 400 when any named field is missing or blank."""
    for name in names:
        value = payload.get(name)
        if not isinstance(value, str) or not value.strip():
            abort(400, description=message)


def register_error_handlers(app):
    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        if current_app and current_app.debug:
            logging.exception("Validation failed", exc_info=err)
        return error_response("Invalid input", 422)

    # Integrity errors that slipped past the service layer
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err)).lower()
        logging.warning("Integrity error: %s", message)
        if "unique" in message:
            return error_response("Unique constraint violated.", 409)
        return error_response("Integrity error.", 400)

    # Werkzeug HTTPExceptions (abort, 404, 405, 413...) map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.description or err.name, err.code or 500)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        return error_response("An unexpected error occurred", 500)
