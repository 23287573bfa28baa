# http_errors.py
"""JSON error bodies shared by the three Flask services."""

import sqlite3

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from config import utc_now
from exceptions import RestaurantError


class BadRequestValue(Exception):
    """Unparsable path or query value. Carries a client-safe message."""
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def error_response(status: int, error: str, message: str):
    body = {
        "timestamp": utc_now().isoformat(),
        "status": status,
        "error": error,
        "message": message,
    }
    return jsonify(body), status


def register_error_handlers(app: Flask, log) -> None:

    @app.errorhandler(RestaurantError)
    def _domain_error(e: RestaurantError):
        if e.status_code >= 500:
            log.error(f"{type(e).__name__}: {e.message}")
        else:
            log.info(f"{type(e).__name__} -> {e.status_code}: {e.message}")
        return error_response(e.status_code, e.error, e.message)

    @app.errorhandler(BadRequestValue)
    def _bad_value(e: BadRequestValue):
        log.info(f"Bad request value: {e.message}")
        return error_response(400, "Bad Request", e.message)

    @app.errorhandler(sqlite3.Error)
    def _db_error(e: sqlite3.Error):
        log.exception(f"Database error: {e}")
        return error_response(503, "Service Unavailable", "Database service is temporarily unavailable")

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        # werkzeug's own 400/404/405: keep the code, drop its HTML and description
        if e.code == 400:
            message = "Malformed request body or invalid value"
        else:
            message = e.name
        return error_response(e.code or 500, e.name, message)

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        log.exception(f"Unhandled exception: {e}")
        return error_response(500, "Internal Server Error", "An unexpected error occurred. Please contact support.")
