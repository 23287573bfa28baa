# report_app.py
"""Report service: sales summary of completed (READY) orders."""

from datetime import date
from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request

import config
from db import init_state_db
from http_errors import BadRequestValue, register_error_handlers
from logger import get_logger
from services.report_service import generate_report

log = get_logger("report_app")


def _date_param(name: str) -> date:
    raw = request.args.get(name)
    if raw is None or not raw.strip():
        raise BadRequestValue(f"Required parameter '{name}' is missing")
    try:
        return date.fromisoformat(raw.strip())
    except ValueError:
        raise BadRequestValue("Invalid date format. Expected ISO-8601 (YYYY-MM-DD)")


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(STATE_DB_PATH=config.STATE_DB_PATH)
    app.config.update(overrides or {})

    init_state_db(app.config["STATE_DB_PATH"])
    register_error_handlers(app, log)

    @app.get("/health")
    def health():
        return jsonify({"status": "UP", "service": "report-service"})

    @app.get("/reports")
    def report():
        start_date = _date_param("startDate")
        end_date = _date_param("endDate")
        return jsonify(generate_report(start_date, end_date, current_app.config["STATE_DB_PATH"]))

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=config.REPORT_SERVICE_PORT, debug=True)
