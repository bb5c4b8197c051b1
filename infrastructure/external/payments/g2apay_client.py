"""
G2A Pay adapter.

Checkout: form POST to the quote endpoint, the JSON token becomes a redirect.
Refund: signed PUT against the REST transactions endpoint.
All hashes are SHA-256 hex digests over plain concatenations; amounts are
always signed in their two-decimal wire form.
"""
from __future__ import annotations

import hashlib
from typing import Any, Optional
from urllib.parse import urlencode

from application.dtos.payments import (
    CheckoutFailure,
    CheckoutFailureReason,
    CheckoutResult,
    RedirectTarget,
    RefundOutcome,
    RefundStatus,
)
from application.services.provider_selector import ProviderVariant
from core.logging_config import get_logger
from core.settings import G2APayEnvironment, PaymentUrls
from domain.common.money import format2, format_quantity
from domain.order.entity import Order
from infrastructure.external.payments.exceptions import (
    GatewayResponseError,
    GatewayTransportError,
)
from infrastructure.external.payments.http import GatewayHttpClient


logger = get_logger(__name__)

REFUND_SUCCESS_MESSAGE = "Order has been successful refunded"


def _sha256(*parts: Any) -> str:
    return hashlib.sha256("".join(str(p) for p in parts).encode("utf-8")).hexdigest()


def flatten_items(items: list[dict[str, Any]]) -> dict[str, str]:
    """Encode item rows the way G2A's form parser expects: ``items[0][sku]``."""
    out: dict[str, str] = {}
    for idx, item in enumerate(items):
        for key, value in item.items():
            out[f"items[{idx}][{key}]"] = "" if value is None else str(value)
    return out


class G2APayProvider:
    name = ProviderVariant.G2APAY.value

    def __init__(self, env: G2APayEnvironment, urls: PaymentUrls, *, http: Optional[GatewayHttpClient] = None):
        if not (env.api_hash and env.secret and env.merchant_email):
            raise RuntimeError("G2APAY configuration incomplete")
        self._env = env
        self._urls = urls
        self._http = http or GatewayHttpClient(self.name)

    async def aclose(self) -> None:
        await self._http.aclose()

    # ---- signing ----
    def checkout_hash(self, order_number: str, amount: str, currency: str) -> str:
        return _sha256(order_number, amount, currency, self._env.secret)

    def authorization_header(self) -> str:
        auth_hash = _sha256(self._env.api_hash, self._env.merchant_email, self._env.secret)
        return f"{self._env.api_hash};{auth_hash}"

    def refund_hash(self, sale_id: str, order_number: str, amount: str, refund_amount: str) -> str:
        return _sha256(sale_id, order_number, amount, refund_amount, self._env.secret)

    # ---- checkout ----
    def build_checkout_params(self, order: Order) -> dict[str, str]:
        amount = format2(order.amount)
        params = {
            "api_hash": self._env.api_hash or "",
            "hash": self.checkout_hash(order.number, amount, order.currency),
            "order_id": order.number,
            "amount": amount,
            "currency": order.currency,
            "email": order.buyer_email,
            "url_failure": self._urls.failure,
            "url_ok": self._urls.success_for("g2apay"),
        }
        # the whole purchase is one line item; quantity travels in `extra`
        item = {
            "id": order.product_id,
            "sku": order.product_id,
            "name": order.product,
            "amount": amount,
            "price": amount,
            "qty": 1,
            "type": "product",
            "url": order.product_url or "",
            "extra": format_quantity(order.quantity),
        }
        params.update(flatten_items([item]))
        return params

    async def initiate_checkout(self, order: Order) -> CheckoutResult:
        logger.info("payment_create_request", provider=self.name, order_number=order.number)
        try:
            response = await self._http.request("POST", self._env.token_url, data=self.build_checkout_params(order))
            if response.status_code != 200:
                raise GatewayResponseError(
                    "Quote request rejected",
                    provider=self.name,
                    status_code=response.status_code,
                    details={"body": response.text[:500]},
                )
            payload = self._http.decode_json(response)
            token = payload.get("token")
            if not token:
                raise GatewayResponseError(
                    "Quote response carries no token",
                    provider=self.name,
                    status_code=response.status_code,
                    details={"status": payload.get("status")},
                )
        except (GatewayTransportError, GatewayResponseError) as exc:
            logger.error(
                "payment_create_failed",
                provider=self.name,
                order_number=order.number,
                error=exc.message,
                details=exc.details,
            )
            return CheckoutFailure(reason=CheckoutFailureReason.PAYMENT_INITIATION_FAILED, provider=self.name)

        url = f"{self._env.redirect_url}?{urlencode({'token': token})}"
        logger.info("payment_create_success", provider=self.name, order_number=order.number)
        return RedirectTarget(url=url, provider=self.name, order_number=order.number)

    # ---- refund ----
    async def process_refund(self, order: Order) -> RefundOutcome:
        if not order.sale_id:
            logger.warning("refund_missing_sale_id", provider=self.name, order_number=order.number)
            return RefundOutcome.error("Order has no G2A Pay transaction id", provider=self.name)

        amount = format2(order.amount)
        data = {
            "action": "refund",
            "amount": amount,
            "hash": self.refund_hash(order.sale_id, order.number, amount, amount),
        }
        headers = {"Authorization": self.authorization_header()}
        url = f"{self._env.rest_url.rstrip('/')}/{order.sale_id}"
        logger.info("refund_request", provider=self.name, order_number=order.number, amount=amount)
        try:
            response = await self._http.request("PUT", url, data=data, headers=headers)
        except GatewayTransportError as exc:
            return RefundOutcome.error(exc.message, provider=self.name)

        content = self._decode_quietly(response)
        if response.status_code == 200:
            return RefundOutcome(
                status=RefundStatus.SUCCESS,
                message=REFUND_SUCCESS_MESSAGE,
                code=200,
                provider=self.name,
                details=content,
            )

        message = content.get("message") or content.get("status") or f"Refund rejected (HTTP {response.status_code})"
        logger.warning(
            "refund_rejected",
            provider=self.name,
            order_number=order.number,
            status_code=response.status_code,
            message=message,
        )
        return RefundOutcome(
            status=RefundStatus.FAILED,
            message=str(message),
            code=content.get("code") or response.status_code,
            provider=self.name,
            details=content,
        )

    def _decode_quietly(self, response) -> dict[str, Any]:
        try:
            return self._http.decode_json(response)
        except GatewayResponseError:
            return {"body": response.text[:500]} if response.text else {}
