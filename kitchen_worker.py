# kitchen_worker.py
"""Kitchen worker: receives order placed events from the order service."""

from typing import Any, Dict, Optional

from flask import Flask, current_app, jsonify, request

import config
from db import init_state_db, list_tickets
from http_errors import register_error_handlers
from logger import get_logger
from services.kitchen_service import handle_order_placed

log = get_logger("kitchen_worker")

MAX_TICKET_PAGE = 500


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(STATE_DB_PATH=config.STATE_DB_PATH)
    app.config.update(overrides or {})

    init_state_db(app.config["STATE_DB_PATH"])
    register_error_handlers(app, log)

    @app.get("/health")
    def health():
        return jsonify({"status": "UP", "service": "kitchen-worker"})

    @app.post("/internal/events/order-placed")
    def order_placed():
        ticket = handle_order_placed(request.get_json(force=True), current_app.config["STATE_DB_PATH"])
        return jsonify({"accepted": True, "eventId": ticket.event_id, "orderId": ticket.order_id}), 202

    @app.get("/internal/tickets")
    def tickets():
        limit = request.args.get("limit", default=100, type=int)
        # sqlite treats a negative LIMIT as unbounded
        limit = min(max(limit, 1), MAX_TICKET_PAGE)
        return jsonify([t.to_dict() for t in list_tickets(limit, current_app.config["STATE_DB_PATH"])])

    log.info(f"Kitchen worker ready (env={config.ENV})")
    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=config.KITCHEN_WORKER_PORT, debug=True)
