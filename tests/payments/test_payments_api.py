from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_checkout_service, get_refund_service, get_settlement_service
from application.services.checkout_service import CheckoutService
from application.services.provider_selector import ProviderSelector
from application.services.refund_service import RefundService
from application.services.settlement_service import SettlementService
from core.exceptions import business_code_to_http_status
from core.settings import payment_settings
from domain.services.fee_calculator import FeeCalculator
from main import app
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode
from conftest import FakeConverter, FakeGeoLocator, ProviderFactory, sequential_numbers


CHECKOUT_BODY = {
    "payment_method": "G2APay",
    "buyer": {"user_id": 42, "email": "buyer@example.com", "name": "Buyer"},
    "pricing": {"product_id": 7, "unit_price": "0.10", "quantity": "100", "currency": "USD", "order_price": "10.00"},
}


@pytest.fixture
def client(uow_factory, publisher):
    factory = ProviderFactory()

    async def checkout_service():
        return CheckoutService(
            uow_factory=uow_factory,
            selector=ProviderSelector(),
            provider_factory=factory,
            converter=FakeConverter(),
            geolocator=FakeGeoLocator(),
            number_generator=sequential_numbers(),
            surcharge_methods={"PSC": Decimal("10")},
        )

    async def refund_service():
        return RefundService(uow_factory=uow_factory, selector=ProviderSelector(), provider_factory=factory, publisher=publisher)

    async def settlement_service():
        return SettlementService(uow_factory=uow_factory, fee_calculator=FeeCalculator(FakeConverter()))

    app.dependency_overrides[get_checkout_service] = checkout_service
    app.dependency_overrides[get_refund_service] = refund_service
    app.dependency_overrides[get_settlement_service] = settlement_service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_routes_registered():
    assert app.url_path_for("checkout") == "/api/v1/payments/checkout"
    assert app.url_path_for("refund") == "/api/v1/payments/refunds"
    assert app.url_path_for("settle", order_id=1) == "/api/v1/payments/orders/1/settlement"
    assert app.url_path_for("health_check") == "/health"


def test_checkout_redirects_to_gateway(client, store):
    resp = client.post("/api/v1/payments/checkout", json=CHECKOUT_BODY, headers={"X-Forwarded-For": "203.0.113.5, 10.0.0.1"}, follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"].startswith("https://gateway.test/G2APay")
    assert store.orders[1].ip == "203.0.113.5"
    assert "x-request-id" in resp.headers


def test_checkout_without_email_redirects_to_sign_in(client, store):
    body = dict(CHECKOUT_BODY, buyer={})
    resp = client.post("/api/v1/payments/checkout", json=body, follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == payment_settings.urls.sign_in
    assert store.orders == {}


def test_checkout_failure_redirects_to_error_page(client, store):
    store.fail_create = True
    resp = client.post("/api/v1/payments/checkout", json=CHECKOUT_BODY, follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == payment_settings.urls.error_page


def test_unpriceable_checkout_redirects_to_error_page(client, store):
    body = dict(CHECKOUT_BODY, pricing=dict(CHECKOUT_BODY["pricing"], currency="CHF"))
    resp = client.post("/api/v1/payments/checkout", json=body, follow_redirects=False)
    assert resp.status_code == 302
    assert resp.headers["location"] == payment_settings.urls.error_page
    assert store.orders == {}


def test_checkout_validation_error(client):
    body = dict(CHECKOUT_BODY, pricing={"product_id": 7, "unit_price": "0.1", "quantity": "1", "currency": "EURO", "order_price": "1"})
    resp = client.post("/api/v1/payments/checkout", json=body)
    assert resp.status_code == 422
    assert resp.json()["code"] == 10003


def test_refund_round_trip(client, store, order_factory):
    store.orders[1] = order_factory()
    first = client.post("/api/v1/payments/refunds", json={"order_id": 1, "operator_id": 3})
    assert first.json() == {"code": 200, "message": "Refunded", "user_id": 42}
    again = client.post("/api/v1/payments/refunds", json={"order_id": 1, "operator_id": 3})
    assert again.json() == {"code": 500, "message": "Order already refunded"}


def test_refund_without_order_id(client):
    resp = client.post("/api/v1/payments/refunds", json={})
    assert resp.json() == {"code": 500, "message": "Something went wrong"}


def test_settlement_of_unknown_order_is_404(client):
    resp = client.post("/api/v1/payments/orders/77/settlement", json={"payment_sum": "10.00", "fee": "0.30"})
    assert resp.status_code == 404
    body = resp.json()
    assert body["code"] == 20100
    assert body["error"]["type"] == "OrderNotFound"


def test_settlement_records_profit(client, store, order_factory):
    store.orders[1] = order_factory()
    resp = client.post(
        "/api/v1/payments/orders/1/settlement",
        json={"payment_sum": "10.00", "fee": "0.30", "transaction_id": "sk-1", "payment_status": "complete"},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    # cost price 0.08 x 100 units
    assert Decimal(data["profit"]) == Decimal("1.70")
    assert store.orders[1].transaction_id == "sk-1"


def test_health(client):
    assert client.get("/health").json()["data"] == {"status": "healthy"}


def test_business_code_http_status():
    assert business_code_to_http_status(BusinessCode.ORDER_NOT_FOUND) == 404
    assert business_code_to_http_status(BusinessCode.ORDER_ALREADY_REFUNDED) == 409
    assert business_code_to_http_status(BusinessCode.DATABASE_ERROR) == 500
    assert business_code_to_http_status(PaymentCode.PROVIDER_ERROR) == 502
    assert business_code_to_http_status(PaymentCode.MALFORMED_RESPONSE) == 502
    assert business_code_to_http_status(PaymentCode.UNKNOWN_STATUS) == 502
    assert business_code_to_http_status(12345) == 400
