# tests/conftest.py
import os
import tempfile

# keep test logs out of the project folder; must run before config is imported
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="restaurant-logs-"))

from decimal import Decimal
from typing import List

import pytest

from db import OrderRepository, ProductRepository, init_state_db, seed_menu_if_empty
from exceptions import EventPublicationFailure
from models import OrderPlacedEvent, Product

KITCHEN_TOKEN = "test-kitchen-token-2026"
TOKEN_HEADER = "X-Kitchen-Token"


# -------------------------
# Fakes
# -------------------------

class RecordingPublisher:
    def __init__(self):
        self.events: List[OrderPlacedEvent] = []

    def publish(self, event: OrderPlacedEvent) -> None:
        self.events.append(event)


class FailingPublisher:
    def __init__(self):
        self.attempts = 0

    def publish(self, event: OrderPlacedEvent) -> None:
        self.attempts += 1
        raise EventPublicationFailure(order_id=event.order_id)


# -------------------------
# Store
# -------------------------

@pytest.fixture
def db_path(tmp_path):
    path = str(tmp_path / "state.db")
    init_state_db(path)
    seed_menu_if_empty(path)
    return path


@pytest.fixture
def product_repo(db_path):
    return ProductRepository(db_path)


@pytest.fixture
def order_repo(db_path):
    return OrderRepository(db_path)


@pytest.fixture
def inactive_product(product_repo):
    return product_repo.save(
        Product(id=None, name="Discontinued Burger", price=Decimal("11.00"), category="principales", is_active=False)
    )


@pytest.fixture
def publisher():
    return RecordingPublisher()


# -------------------------
# Order service HTTP
# -------------------------

@pytest.fixture
def order_app(db_path, publisher):
    from app import create_app
    return create_app({
        "TESTING": True,
        "STATE_DB_PATH": db_path,
        "KITCHEN_AUTH_TOKEN": KITCHEN_TOKEN,
        "EVENT_PUBLISHER": publisher,
    })


@pytest.fixture
def client(order_app):
    return order_app.test_client()


@pytest.fixture
def kitchen_headers():
    return {TOKEN_HEADER: KITCHEN_TOKEN}
