import hashlib
import json
from decimal import Decimal
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from application.dtos.payments import CheckoutFailure, RedirectTarget, RefundStatus
from core.settings import G2APaySettings, G2APayEnvironment, PaymentUrls
from infrastructure.external.payments.g2apay_client import G2APayProvider
from infrastructure.external.payments.http import GatewayHttpClient


ENV = G2APayEnvironment(
    token_url="https://checkout.g2a.test/index/createQuote",
    redirect_url="https://checkout.g2a.test/index/gateway",
    rest_url="https://pay.g2a.test/rest/transactions",
    api_hash="hash-123",
    secret="s3cr3t",
    merchant_email="merchant@shop.test",
)


def _provider(handler, env=ENV):
    http = GatewayHttpClient("G2APay", transport=httpx.MockTransport(handler))
    return G2APayProvider(env, PaymentUrls(), http=http)


def _form(request: httpx.Request) -> dict:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.mark.asyncio
async def test_checkout_redirects_with_token(order_factory):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["form"] = _form(request)
        return httpx.Response(200, json={"status": "ok", "token": "tok-1"})

    provider = _provider(handler)
    result = await provider.initiate_checkout(order_factory())
    await provider.aclose()

    assert isinstance(result, RedirectTarget)
    assert urlparse(result.url).netloc == "checkout.g2a.test"
    assert result.url == "https://checkout.g2a.test/index/gateway?token=tok-1"
    assert seen["url"] == ENV.token_url
    form = seen["form"]
    assert form["amount"] == "10.00"
    assert form["order_id"] == "ORD-0001"
    assert form["items[0][qty]"] == "1"
    assert form["items[0][price]"] == "10.00"
    assert form["items[0][sku]"] == "7"
    assert form["items[0][extra]"] == "100"
    assert form["items[0][type]"] == "product"


@pytest.mark.asyncio
async def test_checkout_hash_signs_rounded_amount(order_factory):
    captured = {}

    def handler(request):
        captured.update(_form(request))
        return httpx.Response(200, json={"token": "t"})

    provider = _provider(handler)
    await provider.initiate_checkout(order_factory(amount=Decimal("10.005")))

    expected = hashlib.sha256("ORD-000110.01USDs3cr3t".encode()).hexdigest()
    assert captured["amount"] == "10.01"
    assert captured["hash"] == expected


@pytest.mark.asyncio
@pytest.mark.parametrize("response", [
    httpx.Response(200, json={"status": "error"}),
    httpx.Response(200, text="<html>maintenance</html>"),
    httpx.Response(500, json={"token": "ignored"}),
])
async def test_checkout_failures_are_values(order_factory, response):
    provider = _provider(lambda request: response)
    result = await provider.initiate_checkout(order_factory())
    assert isinstance(result, CheckoutFailure)
    assert result.provider == "G2APay"


@pytest.mark.asyncio
async def test_checkout_transport_error_is_failure(order_factory):
    def handler(request):
        raise httpx.ReadTimeout("timed out", request=request)

    result = await _provider(handler).initiate_checkout(order_factory())
    assert isinstance(result, CheckoutFailure)


@pytest.mark.asyncio
async def test_refund_success_signs_request(order_factory):
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["form"] = _form(request)
        return httpx.Response(200, json={"status": "ok"})

    outcome = await _provider(handler).process_refund(order_factory(sale_id="sale-9"))

    assert outcome.status is RefundStatus.SUCCESS
    assert outcome.code == 200
    assert seen["method"] == "PUT"
    assert seen["url"] == "https://pay.g2a.test/rest/transactions/sale-9"
    auth_hash = hashlib.sha256("hash-123merchant@shop.tests3cr3t".encode()).hexdigest()
    assert seen["auth"] == f"hash-123;{auth_hash}"
    refund_hash = hashlib.sha256("sale-9ORD-000110.0010.00s3cr3t".encode()).hexdigest()
    assert seen["form"] == {"action": "refund", "amount": "10.00", "hash": refund_hash}


@pytest.mark.asyncio
async def test_refund_rejection_is_failed(order_factory):
    def handler(request):
        return httpx.Response(400, content=json.dumps({"message": "Transaction already refunded"}))

    outcome = await _provider(handler).process_refund(order_factory(sale_id="sale-9"))
    assert outcome.status is RefundStatus.FAILED
    assert outcome.message == "Transaction already refunded"
    assert outcome.code == 400


@pytest.mark.asyncio
async def test_refund_transport_error_is_error(order_factory):
    def handler(request):
        raise httpx.ConnectError("refused", request=request)

    outcome = await _provider(handler).process_refund(order_factory(sale_id="sale-9"))
    assert outcome.status is RefundStatus.ERROR


@pytest.mark.asyncio
async def test_refund_without_sale_id_never_calls_gateway(order_factory):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200)

    outcome = await _provider(handler).process_refund(order_factory(sale_id=None))
    assert outcome.status is RefundStatus.ERROR
    assert calls == []


def test_environment_is_selected_as_a_whole():
    cfg = G2APaySettings(
        live=G2APayEnvironment(api_hash="live-hash", secret="live-secret", merchant_email="m@live"),
    )
    sandbox = cfg.active(True)
    live = cfg.active(False)
    assert "test" in sandbox.token_url and "test" in sandbox.rest_url
    assert sandbox.api_hash is None
    assert live.api_hash == "live-hash" and "test" not in live.token_url


def test_incomplete_configuration_rejected():
    with pytest.raises(RuntimeError):
        G2APayProvider(G2APayEnvironment(), PaymentUrls())
