#models.py
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, List

from config import utc_now
from services.order_status import OrderStatus, validate_transition


@dataclass
class OrderItem:
    product_id: int
    quantity: int
    note: Optional[str] = None


@dataclass
class Order:
    table_id: int
    items: List[OrderItem] = field(default_factory=list)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    deleted: bool = False
    deleted_at: Optional[datetime] = None

    def update_status(self, requested: OrderStatus) -> None:
        # validate first: a rejected transition leaves the order untouched
        validate_transition(self.status, requested)
        self.status = requested
        self.updated_at = utc_now()

    def mark_deleted(self) -> None:
        """
        Soft delete. Safe to repeat: the flag stays set and deleted_at only
        moves forward. Status is kept for the audit trail.
        """
        now = utc_now()
        if self.deleted_at is not None and now < self.deleted_at:
            now = self.deleted_at
        self.deleted = True
        self.deleted_at = now

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tableId": self.table_id,
            "status": self.status.value,
            "items": [
                {"productId": it.product_id, "quantity": it.quantity, "note": it.note}
                for it in self.items
            ],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


@dataclass
class Product:
    id: int
    name: str
    price: Decimal
    description: str = ""
    category: str = ""
    is_active: bool = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "price": float(self.price),
            "category": self.category,
            "isActive": self.is_active,
        }


@dataclass
class OrderPlacedEvent:
    order_id: str
    table_id: int
    items: List[OrderItem]
    created_at: datetime
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    event_type: str = "order.placed"
    event_version: int = 1
    occurred_at: datetime = field(default_factory=utc_now)

    @classmethod
    def from_order(cls, order: Order) -> "OrderPlacedEvent":
        return cls(
            order_id=order.id,
            table_id=order.table_id,
            items=[OrderItem(it.product_id, it.quantity) for it in order.items],
            created_at=order.created_at,
        )


@dataclass
class KitchenTicket:
    event_id: str
    order_id: str
    table_id: int
    items: List[OrderItem]
    event_version: int
    received_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict:
        return {
            "eventId": self.event_id,
            "orderId": self.order_id,
            "tableId": self.table_id,
            "items": [{"productId": it.product_id, "quantity": it.quantity} for it in self.items],
            "eventVersion": self.event_version,
            "receivedAt": self.received_at.isoformat(),
        }
