from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """
    Base for errors raised by services and routes.
    Rendered as {statusCode, data, message, success: false, errors}.
    """
    status_code = 500
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, errors: list | None = None, data=None):
        self.message = message or self.default_message
        self.errors = list(errors or [])
        self.data = data
        super().__init__(self.message)


class BadRequest(ApiError):
    status_code = 400
    default_message = "Bad request"


class Unauthorized(ApiError):
    status_code = 401
    default_message = "Unauthorized request"


class NotFound(ApiError):
    status_code = 404
    default_message = "Resource not found"


class Conflict(ApiError):
    status_code = 409
    default_message = "Conflict"


class ServerError(ApiError):
    status_code = 500
    default_message = "Something went wrong"


def api_response(status: int, data=None, message: str = "Success"):
    payload = {
        "statusCode": status,
        "data": data,
        "message": message,
        "success": status < 400,
    }
    return jsonify(payload), status


def error_response(message: str, status: int, errors: list | None = None, data=None):
    payload = {
        "statusCode": status,
        "data": data,
        "message": message,
        "success": False,
        "errors": errors or [],
    }
    return jsonify(payload), status


def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.status_code >= 500:
            logger.error("Server error: %s", err.message)
        return error_response(err.message, err.status_code, errors=err.errors, data=err.data)

    # Marshmallow validation errors are malformed input
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("Invalid input", 400, errors=[err.messages])

    # Unique constraints on username/email
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        logger.warning("Integrity error: %s", message)
        lower_msg = message.lower()
        if "unique" in lower_msg or "duplicate" in lower_msg:
            return error_response("User with this username or email already exists.", 409)
        return error_response("Integrity error.", 400)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.description or err.name, err.code or 400)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        # In dev, include exception details to speed up debugging
        errors = None
        if current_app and current_app.debug:
            errors = [{"type": err.__class__.__name__, "message": str(err)}]
        return error_response("An unexpected error occurred", 500, errors=errors)
