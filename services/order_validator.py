# services/order_validator.py

from typing import Any, List

from config import MAX_TABLE_ID, MIN_TABLE_ID
from exceptions import InactiveProduct, InvalidOrderInput, ProductNotFound
from logger import get_logger
from models import OrderItem

log = get_logger("order_validator")


def _is_int(value: Any) -> bool:
    # bool is an int subclass; true/false are not table or product ids
    return isinstance(value, int) and not isinstance(value, bool)


def validate_table_id(table_id: Any) -> int:
    if table_id is None:
        raise InvalidOrderInput("Table ID is required")
    if not _is_int(table_id):
        raise InvalidOrderInput("Table ID must be an integer")
    if table_id < MIN_TABLE_ID:
        raise InvalidOrderInput("Table ID must be a positive integer")
    if table_id > MAX_TABLE_ID:
        raise InvalidOrderInput(f"Table ID must be between {MIN_TABLE_ID} and {MAX_TABLE_ID}")
    return table_id


def parse_items(raw_items: Any) -> List[OrderItem]:
    if not isinstance(raw_items, list) or not raw_items:
        raise InvalidOrderInput("Order must contain at least one item")

    items: List[OrderItem] = []
    for pos, raw in enumerate(raw_items, start=1):
        if not isinstance(raw, dict):
            raise InvalidOrderInput(f"Item {pos} must be an object")

        product_id = raw.get("productId")
        quantity = raw.get("quantity")
        note = raw.get("note")

        if not _is_int(product_id):
            raise InvalidOrderInput(f"Item {pos}: productId is required and must be an integer")
        if not _is_int(quantity) or quantity < 1:
            raise InvalidOrderInput(f"Item {pos}: quantity must be a positive integer")
        if note is not None and not isinstance(note, str):
            raise InvalidOrderInput(f"Item {pos}: note must be text")

        items.append(OrderItem(product_id=product_id, quantity=quantity, note=note or None))
    return items


def validate_create_order(payload: Any, product_repo) -> tuple[int, List[OrderItem]]:
    """
    Validate a create order request body and return (table_id, items).
    Structural problems raise InvalidOrderInput; unknown products raise
    ProductNotFound and unavailable ones InactiveProduct.
    """
    if not isinstance(payload, dict):
        raise InvalidOrderInput("Request body must be a JSON object")

    table_id = validate_table_id(payload.get("tableId"))
    items = parse_items(payload.get("items"))

    for it in items:
        product = product_repo.find_by_id(it.product_id)
        if product is None:
            log.info(f"Rejected order for table {table_id}: product {it.product_id} not found")
            raise ProductNotFound(it.product_id)
        if not product.is_active:
            log.info(f"Rejected order for table {table_id}: product {it.product_id} inactive")
            raise InactiveProduct(it.product_id)

    return table_id, items
