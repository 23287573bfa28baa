# app.py
"""
Order service HTTP boundary.

Kitchen endpoints (order list, status change, deletes) sit behind the
kitchen security chain, which runs before every request. Waitress serves
it in production: waitress-serve --call app:create_app
"""

import uuid
from typing import Any, Dict, List, Optional

from flask import Flask, current_app, jsonify, request

import config
from api import OrderPlacedEventPublisher
from db import OrderRepository, ProductRepository, init_state_db, seed_menu_if_empty
from http_errors import BadRequestValue, error_response, register_error_handlers
from logger import get_logger
from services.kitchen_security import AuthorizationRequest, build_kitchen_security_chain
from services.menu_service import get_active_menu
from services.order_service import OrderService
from services.order_status import OrderStatus, parse_status

log = get_logger("app")


def create_app(overrides: Optional[Dict[str, Any]] = None) -> Flask:
    app = Flask(__name__)
    app.config.update(
        STATE_DB_PATH=config.STATE_DB_PATH,
        KITCHEN_TOKEN_HEADER=config.KITCHEN_TOKEN_HEADER,
        KITCHEN_AUTH_TOKEN=config.KITCHEN_AUTH_TOKEN,
        CONFIRM_DESTRUCTIVE_HEADER=config.CONFIRM_DESTRUCTIVE_HEADER,
        KITCHEN_WORKER_URL=config.KITCHEN_WORKER_URL,
        EVENT_PUBLISHER=None,
        SEED_MENU=True,
    )
    app.config.update(overrides or {})

    db_path = app.config["STATE_DB_PATH"]
    init_state_db(db_path)
    if app.config["SEED_MENU"]:
        seed_menu_if_empty(db_path)

    publisher = app.config["EVENT_PUBLISHER"] or OrderPlacedEventPublisher(url=app.config["KITCHEN_WORKER_URL"])
    product_repo = ProductRepository(db_path)
    app.extensions["product_repo"] = product_repo
    app.extensions["order_service"] = OrderService(OrderRepository(db_path), product_repo, publisher)
    app.extensions["kitchen_security"] = build_kitchen_security_chain(
        config.require_kitchen_token(app.config["KITCHEN_AUTH_TOKEN"])
    )

    register_error_handlers(app, log)
    app.before_request(_kitchen_gate)
    _register_routes(app)

    log.info(f"Order service ready (env={config.ENV}, db={db_path})")
    return app


def _kitchen_gate():
    header = current_app.config["KITCHEN_TOKEN_HEADER"]
    current_app.extensions["kitchen_security"].handle(
        AuthorizationRequest(method=request.method, path=request.path, token=request.headers.get(header))
    )


def _service() -> OrderService:
    return current_app.extensions["order_service"]


def _order_id(raw: str) -> str:
    try:
        return str(uuid.UUID(raw))
    except ValueError:
        raise BadRequestValue("Invalid value for parameter 'id'. Expected type: UUID")


def _status_filter() -> List[OrderStatus]:
    out: List[OrderStatus] = []
    for raw in request.args.getlist("status"):
        for part in raw.split(","):
            if not part.strip():
                continue
            try:
                out.append(parse_status(part))
            except ValueError:
                raise BadRequestValue("Invalid value for parameter 'status'. Expected type: OrderStatus")
    return out


def _register_routes(app: Flask) -> None:

    @app.get("/health")
    def health():
        return jsonify({"status": "UP", "service": "order-service"})

    @app.get("/menu")
    def menu():
        products = get_active_menu(current_app.extensions["product_repo"])
        return jsonify([p.to_dict() for p in products])

    @app.post("/orders")
    def create_order():
        order = _service().create_order(request.get_json(force=True))
        return jsonify(order.to_dict()), 201

    @app.get("/orders")
    def list_orders():
        orders = _service().get_orders(_status_filter())
        return jsonify([o.to_dict() for o in orders])

    @app.get("/orders/<order_id>")
    def get_order(order_id):
        return jsonify(_service().get_order(_order_id(order_id)).to_dict())

    @app.patch("/orders/<order_id>/status")
    def update_status(order_id):
        oid = _order_id(order_id)
        body = request.get_json(force=True)
        if not isinstance(body, dict) or body.get("status") is None:
            raise BadRequestValue("Status is required")
        try:
            requested = parse_status(body["status"])
        except ValueError:
            raise BadRequestValue("Malformed request body or invalid value")
        return jsonify(_service().update_status(oid, requested).to_dict())

    @app.delete("/orders/<order_id>")
    def delete_order(order_id):
        order = _service().delete_order(_order_id(order_id))
        return jsonify({"deletedId": order.id, "deletedAt": order.deleted_at.isoformat()})

    @app.delete("/orders")
    def delete_all_orders():
        confirm_header = current_app.config["CONFIRM_DESTRUCTIVE_HEADER"]
        if (request.headers.get(confirm_header) or "").strip().lower() != "true":
            log.warning("DELETE /orders refused: missing destructive confirmation header")
            return error_response(400, "Bad Request", f"Header '{confirm_header}: true' is required to delete all orders")
        count = _service().delete_all_orders()
        return jsonify({"deletedCount": count, "deletedAt": config.utc_now().isoformat()})


if __name__ == "__main__":
    # For local dev only.
    create_app().run(host="0.0.0.0", port=config.ORDER_SERVICE_PORT, debug=True)
