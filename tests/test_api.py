from datetime import datetime, timezone

import pytest
import requests

from api import OrderPlacedEventPublisher, from_message, to_message
from exceptions import EventPublicationFailure
from models import OrderItem, OrderPlacedEvent

CREATED = datetime(2026, 3, 14, 12, 30, tzinfo=timezone.utc)


def make_event(items=None):
    return OrderPlacedEvent(
        order_id="7d2b1c9e-3f7a-4c1e-9a55-0b8d4f3e2a10",
        table_id=7,
        items=items if items is not None else [OrderItem(1, 2), OrderItem(3, 1)],
        created_at=CREATED,
    )


# ---------------- Wire encoding ----------------

def test_message_carries_envelope_and_payload():
    event = make_event()
    msg = to_message(event)

    assert msg["eventId"] == event.event_id
    assert msg["eventType"] == "order.placed"
    assert msg["eventVersion"] == 1
    assert msg["payload"] == {
        "orderId": event.order_id,
        "tableId": 7,
        "items": [{"productId": 1, "quantity": 2}, {"productId": 3, "quantity": 1}],
        "createdAt": CREATED.isoformat(),
    }


def test_legacy_flat_fields_mirror_payload():
    msg = to_message(make_event())
    for key in ("orderId", "tableId", "items", "createdAt"):
        assert msg[key] == msg["payload"][key]
    # mirrored, not shared
    assert msg["items"] is not msg["payload"]["items"]


def test_empty_items_encode_as_empty_lists():
    msg = to_message(make_event(items=[]))
    assert msg["items"] == [] and msg["payload"]["items"] == []


def test_decode_round_trips_canonical_event():
    event = make_event()
    decoded = from_message(to_message(event))
    assert decoded == event


def test_decode_legacy_flat_message():
    decoded = from_message({
        "eventType": "order.placed",
        "orderId": "abc",
        "tableId": 4,
        "items": [{"productId": 5, "quantity": 1}],
        "createdAt": "2026-03-14T12:30:00Z",
    })
    assert decoded.order_id == "abc"
    assert decoded.table_id == 4
    assert decoded.event_version == 1
    assert decoded.created_at == CREATED
    assert [(i.product_id, i.quantity) for i in decoded.items] == [(5, 1)]


def test_decode_prefers_payload_over_flat_fields():
    decoded = from_message({
        "eventType": "order.placed",
        "eventVersion": 1,
        "orderId": "old",
        "tableId": 1,
        "payload": {"orderId": "new", "tableId": 9},
        "items": [{"productId": 2, "quantity": 3}],
    })
    assert decoded.order_id == "new"
    assert decoded.table_id == 9
    # payload had no items, flat ones fill in
    assert [(i.product_id, i.quantity) for i in decoded.items] == [(2, 3)]


@pytest.mark.parametrize("body", [
    "not an object",
    {"payload": "oops"},
    {"items": "oops"},
    {"items": [1, 2]},
    {"createdAt": "yesterday"},
])
def test_decode_rejects_broken_messages(body):
    with pytest.raises((TypeError, ValueError)):
        from_message(body)


# ---------------- Publisher ----------------

class FakeResponse:
    def __init__(self, status_code, text=""):
        self.status_code = status_code
        self.text = text


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        return self.response


def test_publish_posts_wire_message():
    session = FakeSession(response=FakeResponse(202))
    publisher = OrderPlacedEventPublisher(url="http://kitchen/events", session=session, timeout=2)
    event = make_event()

    publisher.publish(event)

    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "http://kitchen/events"
    assert call["json"] == to_message(event)
    assert call["timeout"] == 2


@pytest.mark.parametrize("error", [
    requests.ConnectionError("refused"),
    requests.Timeout("slow"),
])
def test_unreachable_broker_raises_publication_failure(error):
    publisher = OrderPlacedEventPublisher(url="http://kitchen/events", session=FakeSession(error=error))
    event = make_event()
    with pytest.raises(EventPublicationFailure) as exc:
        publisher.publish(event)
    assert exc.value.order_id == event.order_id
    assert "refused" not in exc.value.message


@pytest.mark.parametrize("status", [400, 500, 503])
def test_rejected_delivery_raises_publication_failure(status):
    publisher = OrderPlacedEventPublisher(url="http://kitchen/events", session=FakeSession(FakeResponse(status)))
    with pytest.raises(EventPublicationFailure):
        publisher.publish(make_event())


def test_no_retry_on_failure():
    session = FakeSession(error=requests.ConnectionError("refused"))
    with pytest.raises(EventPublicationFailure):
        OrderPlacedEventPublisher(url="http://kitchen/events", session=session).publish(make_event())
    assert len(session.calls) == 1
