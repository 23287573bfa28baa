import uuid

import pytest

from exceptions import EventPublicationFailure, InvalidOrderInput, InvalidStatusTransition, OrderNotFound
from services.order_service import OrderService
from services.order_status import OrderStatus

from conftest import FailingPublisher


@pytest.fixture
def service(order_repo, product_repo, publisher):
    return OrderService(order_repo, product_repo, publisher)


def place(service, table_id=5, items=None):
    return service.create_order({
        "tableId": table_id,
        "items": items or [{"productId": 1, "quantity": 2, "note": "sin sal"}],
    })


def test_create_order_persists_pending_and_publishes(service, order_repo, publisher):
    order = place(service)

    assert order.status is OrderStatus.PENDING
    assert order.deleted is False
    assert order_repo.find_active_by_id(order.id) == order

    assert len(publisher.events) == 1
    event = publisher.events[0]
    assert event.order_id == order.id
    assert event.table_id == 5
    assert [(i.product_id, i.quantity) for i in event.items] == [(1, 2)]


def test_invalid_create_publishes_nothing(service, order_repo, publisher):
    with pytest.raises(InvalidOrderInput):
        place(service, table_id=13)
    assert order_repo.find_all_active() == []
    assert publisher.events == []


def test_publish_failure_propagates_and_order_stays(order_repo, product_repo):
    failing = FailingPublisher()
    service = OrderService(order_repo, product_repo, failing)

    with pytest.raises(EventPublicationFailure) as exc:
        place(service)

    assert failing.attempts == 1
    saved = order_repo.find_all_active()
    assert len(saved) == 1
    assert exc.value.order_id == saved[0].id


def test_get_order_not_found(service):
    with pytest.raises(OrderNotFound):
        service.get_order(str(uuid.uuid4()))


@pytest.mark.parametrize("statuses", [None, []])
def test_get_orders_without_filter_returns_all_active(service, order_repo, statuses):
    a, b = place(service, 1), place(service, 2)
    assert [o.id for o in service.get_orders(statuses)] == [a.id, b.id]


def test_get_orders_with_filter(service):
    a, b = place(service, 1), place(service, 2)
    service.update_status(b.id, OrderStatus.IN_PREPARATION)
    assert [o.id for o in service.get_orders([OrderStatus.IN_PREPARATION])] == [b.id]
    assert [o.id for o in service.get_orders([OrderStatus.PENDING])] == [a.id]
    assert service.get_orders([OrderStatus.READY]) == []


def test_update_status_full_lifecycle(service, order_repo):
    order = place(service)
    service.update_status(order.id, OrderStatus.IN_PREPARATION)
    done = service.update_status(order.id, OrderStatus.READY)
    assert done.status is OrderStatus.READY
    assert order_repo.find_active_by_id(order.id).status is OrderStatus.READY


@pytest.mark.parametrize("path", [
    [OrderStatus.READY],
    [OrderStatus.PENDING],
    [OrderStatus.IN_PREPARATION, OrderStatus.PENDING],
    [OrderStatus.IN_PREPARATION, OrderStatus.READY, OrderStatus.IN_PREPARATION],
])
def test_illegal_update_is_not_persisted(service, order_repo, path):
    order = place(service)
    *legal, illegal = path
    for status in legal:
        service.update_status(order.id, status)
    before = order_repo.find_active_by_id(order.id)

    with pytest.raises(InvalidStatusTransition):
        service.update_status(order.id, illegal)

    assert order_repo.find_active_by_id(order.id) == before


def test_update_status_of_deleted_order_is_not_found(service):
    order = place(service)
    service.delete_order(order.id)
    with pytest.raises(OrderNotFound):
        service.update_status(order.id, OrderStatus.IN_PREPARATION)


def test_delete_then_delete_again_is_not_found(service, order_repo):
    order = place(service)
    deleted = service.delete_order(order.id)
    assert deleted.deleted is True and deleted.deleted_at is not None

    with pytest.raises(OrderNotFound) as again:
        service.delete_order(order.id)
    with pytest.raises(OrderNotFound) as never:
        service.delete_order(str(uuid.uuid4()))
    assert type(again.value) is type(never.value)

    # the record is retained for audit
    audit = order_repo.find_by_id_including_deleted(order.id)
    assert audit.deleted is True
    assert audit.status is OrderStatus.PENDING
    assert audit.deleted_at == deleted.deleted_at


def test_deleted_order_disappears_from_every_read(service):
    order = place(service)
    service.update_status(order.id, OrderStatus.IN_PREPARATION)
    service.delete_order(order.id)

    with pytest.raises(OrderNotFound):
        service.get_order(order.id)
    assert service.get_orders() == []
    for status in OrderStatus:
        assert service.get_orders([status]) == []


def test_delete_all_orders(service, order_repo):
    orders = [place(service, n) for n in (1, 2, 3)]
    service.delete_order(orders[0].id)

    assert service.delete_all_orders() == 2
    assert service.get_orders() == []
    for o in orders:
        assert order_repo.find_by_id_including_deleted(o.id).deleted is True


def test_delete_all_with_nothing_active(service):
    assert service.delete_all_orders() == 0
