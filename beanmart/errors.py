"""Error taxonomy and JSON error handlers.

Every failure leaves the API as ``{"success": false, "message": ..., "error": ...}``.
``message`` names the cause category; ``error`` carries the detail string when
there is one. Neither ever includes storage credentials.
"""
import json
import logging

from flask import jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class BeanmartError(Exception):
    status_code = 500

    def __init__(self, message, error=None):
        super().__init__(message)
        self.message = message
        self.error = error

    def to_dict(self):
        body = {"success": False, "message": self.message}
        if self.error:
            body["error"] = self.error
        return body


class InvalidInput(BeanmartError):
    status_code = 400


class FetchError(InvalidInput):
    """Remote image download failed after the retry policy ran out.

    ``kind`` is one of: timeout, connection, not_found, too_large, http,
    invalid_url, generic.
    """

    def __init__(self, message, kind="generic", error=None):
        super().__init__(message, error=error)
        self.kind = kind


class Unauthorized(BeanmartError):
    status_code = 401


class Forbidden(BeanmartError):
    status_code = 403


class NotFound(BeanmartError):
    status_code = 404


class StorageError(BeanmartError):
    status_code = 500


class UploadError(StorageError):
    pass


class ConfigurationError(BeanmartError):
    status_code = 500


class PersistenceError(BeanmartError):
    status_code = 500


class TransformError(BeanmartError):
    """Decode/resize failure. Callers fall back to the original bytes."""


def validation_error_body(exc):
    # exc.json() already renders ctx values (e.g. wrapped exceptions) as strings
    return {
        "success": False,
        "message": "Validation error",
        "errors": json.loads(exc.json(include_url=False)),
    }


def register_error_handlers(app):
    @app.errorhandler(BeanmartError)
    def handle_beanmart_error(exc):
        if exc.status_code >= 500:
            logger.error("%s: %s (%s)", type(exc).__name__, exc.message, exc.error)
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc):
        return jsonify(validation_error_body(exc)), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(exc):
        return (
            jsonify({"success": False, "message": exc.description or exc.name}),
            exc.code,
        )

    @app.errorhandler(Exception)
    def handle_unexpected(exc):
        logger.exception("Unhandled error")
        return jsonify({"success": False, "message": "Internal server error"}), 500
