# services/kitchen_service.py

from typing import Any, Dict, Optional

from api import from_message
from config import MAX_TABLE_ID, MIN_TABLE_ID
from db import insert_ticket_if_new
from exceptions import InvalidEventContract
from logger import get_logger
from models import KitchenTicket, OrderPlacedEvent

log = get_logger("kitchen_service")

EXPECTED_EVENT_TYPE = "order.placed"
SUPPORTED_VERSIONS = {1}


def validate_event(event: OrderPlacedEvent) -> None:
    if event.event_type != EXPECTED_EVENT_TYPE:
        raise InvalidEventContract(f"Unsupported eventType '{event.event_type}'")
    version = event.event_version
    if not isinstance(version, int) or isinstance(version, bool) or version not in SUPPORTED_VERSIONS:
        raise InvalidEventContract(f"Unsupported eventVersion {event.event_version}")
    if not event.order_id:
        raise InvalidEventContract("orderId is required")
    table_id = event.table_id
    if not isinstance(table_id, int) or isinstance(table_id, bool) or not MIN_TABLE_ID <= table_id <= MAX_TABLE_ID:
        raise InvalidEventContract(f"tableId must be between {MIN_TABLE_ID} and {MAX_TABLE_ID}")
    if not event.items:
        raise InvalidEventContract("Event must contain at least one item")
    for it in event.items:
        if it.product_id is None:
            raise InvalidEventContract("Every item needs a productId")
        if not isinstance(it.quantity, int) or isinstance(it.quantity, bool) or it.quantity < 1:
            raise InvalidEventContract("Every item needs a positive quantity")


def handle_order_placed(body: Dict[str, Any], db_path: Optional[str] = None) -> KitchenTicket:
    """
    Decode, validate and record one order placed message.
    Redelivered events (same eventId) are acknowledged without a second ticket.
    """
    try:
        event = from_message(body)
    except (TypeError, ValueError) as e:
        log.warning(f"Undecodable order placed message: {e}")
        raise InvalidEventContract("Malformed order placed event") from e

    try:
        validate_event(event)
    except InvalidEventContract as e:
        log.warning(f"Rejected event {event.event_id}: {e.message}")
        raise

    ticket = KitchenTicket(
        event_id=event.event_id,
        order_id=str(event.order_id),
        table_id=event.table_id,
        items=event.items,
        event_version=event.event_version,
    )
    if insert_ticket_if_new(ticket, db_path):
        log.info(f"Kitchen ticket for order {ticket.order_id} (table {ticket.table_id}) queued")
    else:
        log.info(f"Duplicate event {ticket.event_id} for order {ticket.order_id} ignored")
    return ticket
