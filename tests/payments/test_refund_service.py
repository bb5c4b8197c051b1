import httpx
import pytest

from application.dtos.payments import RefundOutcome, RefundStatus
from application.services.provider_selector import ProviderSelector, ProviderVariant
from application.services.refund_service import RefundService
from domain.order.entity import GatewayStatus, OrderStatus
from domain.order.events import OrderRefunded
from conftest import ProviderFactory


def _service(uow_factory, factory, publisher):
    return RefundService(
        uow_factory=uow_factory,
        selector=ProviderSelector(),
        provider_factory=factory,
        publisher=publisher,
    )


def _seed(store, order):
    store.orders[order.id] = order
    return order


@pytest.mark.asyncio
async def test_successful_refund_marks_order_and_notifies_once(store, uow_factory, publisher, order_factory):
    _seed(store, order_factory(payment="Skrill", payment_provider="Skrill"))
    factory = ProviderFactory(refund_outcome=RefundOutcome(status=RefundStatus.SUCCESS, message="done", code=200))

    response = await _service(uow_factory, factory, publisher).refund(1, operator_id=9)

    assert response.model_dump(exclude_none=True) == {"code": 200, "message": "Refunded", "user_id": 42}
    order = store.orders[1]
    assert order.status == OrderStatus.REFUNDED
    assert order.payment_status == GatewayStatus.REFUNDED
    assert order.manager_id == 9
    assert [e.status for e in store.status_entries] == [OrderStatus.REFUNDED]
    assert len(publisher.events) == 1
    event = publisher.events[0]
    assert isinstance(event, OrderRefunded)
    assert event.order_id == 1 and event.manager_id == 9
    assert store.locked == [1]
    assert factory.built[0].closed


@pytest.mark.asyncio
async def test_transport_error_leaves_order_untouched(store, uow_factory, publisher, order_factory):
    _seed(store, order_factory())
    factory = ProviderFactory(refund_error=httpx.ConnectError("refused"))

    response = await _service(uow_factory, factory, publisher).refund(1, operator_id=9)

    assert response.code == 500
    assert response.message == "Something went wrong"
    assert store.orders[1].status == OrderStatus.CREATED
    assert store.orders[1].manager_id is None
    assert publisher.events == []


@pytest.mark.asyncio
async def test_failed_refund_reports_gateway_reason(store, uow_factory, publisher, order_factory):
    _seed(store, order_factory())
    factory = ProviderFactory(refund_outcome=RefundOutcome(status=RefundStatus.FAILED, message="Insufficient funds", code="05"))

    response = await _service(uow_factory, factory, publisher).refund(1, operator_id=9)

    assert response.model_dump(exclude_none=True) == {"code": 500, "message": "Insufficient funds", "error_code": "05"}
    assert store.orders[1].status == OrderStatus.CREATED
    assert publisher.events == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [RefundStatus.PENDING, RefundStatus.ERROR])
async def test_pending_and_error_report_message_only(store, uow_factory, publisher, order_factory, status):
    _seed(store, order_factory())
    factory = ProviderFactory(refund_outcome=RefundOutcome(status=status, message="please wait", code=0))

    response = await _service(uow_factory, factory, publisher).refund(1, operator_id=9)

    assert response.model_dump(exclude_none=True) == {"code": 500, "message": "please wait"}
    assert store.orders[1].status == OrderStatus.CREATED


@pytest.mark.asyncio
@pytest.mark.parametrize("order_id", [None, 0, 404])
async def test_missing_order_is_generic_failure(store, uow_factory, publisher, order_id):
    factory = ProviderFactory()
    response = await _service(uow_factory, factory, publisher).refund(order_id, operator_id=9)
    assert response.model_dump(exclude_none=True) == {"code": 500, "message": "Something went wrong"}
    assert factory.built == []


@pytest.mark.asyncio
async def test_routes_by_stored_provider_not_method(store, uow_factory, publisher, order_factory):
    # BTC was paid through G2A Pay; the stored provider name decides
    _seed(store, order_factory(payment="BTC", payment_provider="G2APay"))
    built = []

    def factory(variant):
        built.append(variant)
        return ProviderFactory()(variant)

    await _service(uow_factory, factory, publisher).refund(1, operator_id=9)
    assert built == [ProviderVariant.G2APAY]


@pytest.mark.asyncio
async def test_second_refund_never_calls_gateway(store, uow_factory, publisher, order_factory):
    _seed(store, order_factory())
    factory = ProviderFactory()
    service = _service(uow_factory, factory, publisher)

    first = await service.refund(1, operator_id=9)
    second = await service.refund(1, operator_id=10)

    assert first.code == 200
    assert second.model_dump(exclude_none=True) == {"code": 500, "message": "Order already refunded"}
    assert len(factory.built) == 1
    assert len(publisher.events) == 1
    assert store.orders[1].manager_id == 9
