# taskboard/errors.py
from __future__ import annotations
from typing import Any, Dict, Optional
from flask import Flask, jsonify, current_app
from werkzeug.exceptions import HTTPException


class ApiError(Exception):
    """Base for every failure a handler turns into a JSON response."""
    status = 500
    code = "server_error"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message or self.code)
        self.message = message
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.code}
        if self.message:
            body["message"] = self.message
        if self.details:
            body["details"] = self.details
        return body


class Unauthenticated(ApiError):
    status = 401
    code = "unauthorized"


class PermissionDenied(ApiError):
    status = 403
    code = "forbidden"


class NotFound(ApiError):
    status = 404
    code = "not_found"


class ValidationError(ApiError):
    status = 400
    code = "bad_request"


class Conflict(ApiError):
    status = 409
    code = "conflict"

    def __init__(self, code: str = "conflict", message: Optional[str] = None):
        super().__init__(message)
        self.code = code


class InternalFailure(ApiError):
    status = 500
    code = "server_error"

    def to_dict(self) -> Dict[str, Any]:
        # never leak internals
        return {"error": self.code}


def register_error_handlers(app: Flask) -> None:

    @app.errorhandler(ApiError)
    def _api_error(exc: ApiError):
        return jsonify(exc.to_dict()), exc.status

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        # keep werkzeug's status (404 on unknown routes, 405, ...) but answer in JSON
        code = (exc.name or "error").lower().replace(" ", "_")
        return jsonify({"error": code}), exc.code

    @app.errorhandler(Exception)
    def _unhandled(exc: Exception):
        current_app.logger.exception("unhandled error")
        failure = InternalFailure()
        return jsonify(failure.to_dict()), failure.status
