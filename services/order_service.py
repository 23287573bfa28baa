# services/order_service.py
"""
Order orchestration: validation, persistence, status changes, soft
deletes and the order placed event.

Reads go exclusively through the active-only repository queries, so a
soft-deleted order behaves exactly like one that never existed.
"""

from typing import Iterable, List, Optional

from exceptions import OrderNotFound
from logger import get_logger
from models import Order, OrderPlacedEvent
from services.order_status import OrderStatus
from services.order_validator import validate_create_order

log = get_logger("order_service")


class OrderService:

    def __init__(self, order_repo, product_repo, publisher):
        self.order_repo = order_repo
        self.product_repo = product_repo
        self.publisher = publisher

    def create_order(self, payload) -> Order:
        table_id, items = validate_create_order(payload, self.product_repo)

        order = Order(table_id=table_id, items=items)
        self.order_repo.save(order)
        log.info(f"Order {order.id} created for table {table_id} with {len(items)} item(s)")

        # No rollback on failure: the order stays saved and the error reaches the caller.
        self.publisher.publish(OrderPlacedEvent.from_order(order))
        return order

    def get_order(self, order_id: str) -> Order:
        order = self.order_repo.find_active_by_id(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    def get_orders(self, statuses: Optional[Iterable[OrderStatus]] = None) -> List[Order]:
        statuses = list(statuses or [])
        if not statuses:
            return self.order_repo.find_all_active()
        return self.order_repo.find_active_by_status_in(statuses)

    def update_status(self, order_id: str, requested: OrderStatus) -> Order:
        order = self.get_order(order_id)
        previous = order.status
        order.update_status(requested)
        self.order_repo.save(order)
        log.info(f"Order {order_id} status {previous.value} -> {requested.value}")
        return order

    def delete_order(self, order_id: str) -> Order:
        # already deleted orders are invisible here, so a retry reports OrderNotFound
        order = self.get_order(order_id)
        order.mark_deleted()
        self.order_repo.save(order)
        log.info(f"Order {order_id} soft deleted at {order.deleted_at.isoformat()}")
        return order

    def delete_all_orders(self) -> int:
        orders = self.order_repo.find_all_active()
        for order in orders:
            order.mark_deleted()
            self.order_repo.save(order)
        log.info(f"Soft deleted {len(orders)} active order(s)")
        return len(orders)
