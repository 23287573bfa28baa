#api.py
from datetime import datetime
from typing import Optional, List, Dict, Any

import requests

from config import EVENT_TIMEOUT_SECONDS, KITCHEN_WORKER_URL, SESSION
from exceptions import EventPublicationFailure
from models import OrderItem, OrderPlacedEvent
from logger import get_logger

log = get_logger("api")


# ---------------- Wire encoding ----------------
def _items_to_wire(items: Optional[List[OrderItem]]) -> List[Dict[str, Any]]:
    return [{"productId": it.product_id, "quantity": it.quantity} for it in (items or [])]

def to_message(event: OrderPlacedEvent) -> Dict[str, Any]:
    """
    Encode an OrderPlacedEvent for the kitchen worker.

    Fields live in the nested `payload`; orderId/tableId/items/createdAt are
    also mirrored at the top level for consumers that still read the old
    flat message.
    """
    created_at = event.created_at.isoformat() if event.created_at else None
    payload = {
        "orderId": event.order_id,
        "tableId": event.table_id,
        "items": _items_to_wire(event.items),
        "createdAt": created_at,
    }
    return {
        "eventId": event.event_id,
        "eventType": event.event_type,
        "eventVersion": event.event_version,
        "occurredAt": event.occurred_at.isoformat() if event.occurred_at else None,
        "payload": payload,
        # legacy flat fields
        "orderId": payload["orderId"],
        "tableId": payload["tableId"],
        "items": _items_to_wire(event.items),
        "createdAt": created_at,
    }

def _pick(payload: Dict[str, Any], body: Dict[str, Any], key: str):
    if payload.get(key) is not None:
        return payload[key]
    return body.get(key)

def _parse_dt(value) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))

def from_message(body: Dict[str, Any]) -> OrderPlacedEvent:
    """
    Decode a wire message. Nested payload wins; flat legacy fields fill the
    gaps. Raises ValueError/TypeError on structurally broken input.
    """
    if not isinstance(body, dict):
        raise TypeError("Event message must be a JSON object")
    payload = body.get("payload") or {}
    if not isinstance(payload, dict):
        raise TypeError("Event payload must be a JSON object")

    raw_items = _pick(payload, body, "items") or []
    if not isinstance(raw_items, list) or not all(isinstance(i, dict) for i in raw_items):
        raise TypeError("Event items must be a list of JSON objects")
    items = [OrderItem(product_id=i.get("productId"), quantity=i.get("quantity")) for i in raw_items]

    event = OrderPlacedEvent(
        order_id=_pick(payload, body, "orderId"),
        table_id=_pick(payload, body, "tableId"),
        items=items,
        created_at=_parse_dt(_pick(payload, body, "createdAt")),
        event_type=body.get("eventType"),
        event_version=body.get("eventVersion") if body.get("eventVersion") is not None else 1,
    )
    if body.get("eventId"):
        event.event_id = str(body["eventId"])
    if body.get("occurredAt"):
        event.occurred_at = _parse_dt(body["occurredAt"])
    return event


# ---------------- Publisher ----------------
def send_post_request(url: str, body: Dict[str, Any], logger, session: requests.Session = SESSION,
                      timeout: float = EVENT_TIMEOUT_SECONDS) -> requests.Response:
    headers = {"Content-Type": "application/json", "Accept": "application/json"}
    logger.debug(f"POST {url} body: {body}")
    resp = session.post(url, json=body, headers=headers, timeout=timeout)
    logger.debug(f"Response: {resp.status_code} {resp.text}")
    return resp


class OrderPlacedEventPublisher:
    """Delivers order placed events to the kitchen worker over HTTP, synchronously."""

    def __init__(self, url: str = KITCHEN_WORKER_URL, session: requests.Session = SESSION,
                 timeout: float = EVENT_TIMEOUT_SECONDS):
        self.url = url
        self.session = session
        self.timeout = timeout

    def publish(self, event: OrderPlacedEvent) -> None:
        message = to_message(event)
        try:
            resp = send_post_request(self.url, message, log, session=self.session, timeout=self.timeout)
        except requests.RequestException as e:
            log.error(f"Publishing event {event.event_id} for order {event.order_id} failed: {e}")
            raise EventPublicationFailure(order_id=event.order_id) from e

        if not 200 <= resp.status_code < 300:
            log.error(
                f"Kitchen worker rejected event {event.event_id} for order {event.order_id}: "
                f"{resp.status_code} {resp.text}"
            )
            raise EventPublicationFailure(order_id=event.order_id)

        log.info(f"Published {event.event_type} {event.event_id} for order {event.order_id}")
