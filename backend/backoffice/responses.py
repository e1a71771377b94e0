# Overview: The uniform JSON envelope returned by every endpoint.

from flask import jsonify

INTERNAL_ERROR_MESSAGE = "Internal server error"


def success(data=None, message: str = "Request successful", status: int = 200):
    return jsonify({
        "status": "success",
        "message": message,
        "data": data,
    }), status


def error(message: str = INTERNAL_ERROR_MESSAGE, status: int = 500, errors: list | None = None):
    body = {
        "status": "error",
        "message": message,
    }
    if errors:
        body["errors"] = errors
    return jsonify(body), status


def validation_error(exc):
    """400 with the per-field details collected by validation.validate_payload."""
    return error(str(exc) or "Validation failed", 400, errors=getattr(exc, "errors", None))
