# scripts/republish_order_event.py
#
# Re-send the order placed event for an order that was saved but whose
# event never reached the kitchen worker (the create call returned 503).
#
#   python scripts/republish_order_event.py <order-id>

import os, sys

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
sys.path.insert(0, ROOT)

from api import OrderPlacedEventPublisher
from db import OrderRepository
from exceptions import EventPublicationFailure
from logger import get_logger
from models import OrderPlacedEvent

log = get_logger("republish_order_event")


def republish(order_id: str, repo=None, publisher=None) -> bool:
    repo = repo or OrderRepository()
    publisher = publisher or OrderPlacedEventPublisher()

    order = repo.find_by_id_including_deleted(order_id)
    if order is None:
        print(f"Order {order_id} does not exist.")
        return False
    if order.deleted:
        print(f"Order {order_id} was deleted at {order.deleted_at.isoformat()}; not republishing.")
        return False

    try:
        publisher.publish(OrderPlacedEvent.from_order(order))
    except EventPublicationFailure:
        print(f"Kitchen worker still unreachable for order {order_id}.")
        return False

    log.info(f"Republished order placed event for {order_id}")
    print(f"Republished order placed event for {order_id} (table {order.table_id}, status {order.status.value}).")
    return True


def main(argv=None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) != 1:
        print("usage: republish_order_event.py <order-id>")
        return 2
    return 0 if republish(argv[0]) else 1


if __name__ == "__main__":
    raise SystemExit(main())
