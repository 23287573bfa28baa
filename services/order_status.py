# services/order_status.py

from enum import Enum
from typing import Optional

from exceptions import InvalidStatusTransition


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    IN_PREPARATION = "IN_PREPARATION"
    READY = "READY"


# READY has no outgoing edge.
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: frozenset({OrderStatus.IN_PREPARATION}),
    OrderStatus.IN_PREPARATION: frozenset({OrderStatus.READY}),
    OrderStatus.READY: frozenset(),
}


def is_valid_transition(current: Optional[OrderStatus], requested: Optional[OrderStatus]) -> bool:
    if current is None or requested is None:
        return False
    if current == requested:
        return False
    return requested in ALLOWED_TRANSITIONS.get(current, frozenset())


def validate_transition(current: Optional[OrderStatus], requested: Optional[OrderStatus]) -> None:
    """Raise InvalidStatusTransition unless current -> requested is an edge of the status graph."""
    if not is_valid_transition(current, requested):
        raise InvalidStatusTransition(current, requested)


def parse_status(value) -> OrderStatus:
    """Map a client supplied status string to OrderStatus. Raises ValueError on unknown values."""
    if isinstance(value, OrderStatus):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Unsupported status value: {value!r}")
    return OrderStatus(value.strip().upper())
