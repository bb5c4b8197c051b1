"""
Skrill adapter.

Checkout uses the Quick Checkout "prepare_only" flow: the gateway returns a
session id (SID) which is turned into a redirect. Refunds are a two-step
exchange on the merchant refund endpoint (prepare, then refund) answered in
XML.
"""
from __future__ import annotations

import hashlib
import re
from typing import Optional
from urllib.parse import urlencode
from xml.etree import ElementTree

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
from core.settings import PaymentUrls, SkrillEnvironment
from domain.common.money import format2, format_quantity
from domain.order.entity import Order
from infrastructure.external.payments.exceptions import (
    GatewayResponseError,
    GatewayTransportError,
    UnknownRefundStatusError,
)
from infrastructure.external.payments.http import GatewayHttpClient
from shared.codes.payment_codes import (
    GATEWAY_STATUS_TO_REFUND_OUTCOME,
    SKRILL_REFUND_STATUSES,
    skrill_error_text,
)


logger = get_logger(__name__)

REFUND_SUCCESS_MESSAGE = "Order has been successful refunded"
REFUND_PENDING_MESSAGE = "Order refunding is pending, please wait"

_SID_RE = re.compile(r"^[A-Za-z0-9]+$")


def _parse_xml(text: str, provider: str) -> ElementTree.Element:
    try:
        return ElementTree.fromstring(text)
    except ElementTree.ParseError as exc:
        raise GatewayResponseError("Response body is not valid XML", provider=provider, details={"body": text[:500]}) from exc


def _error_text(root: ElementTree.Element) -> Optional[str]:
    """`<error><error_msg>X</error_msg></error>` or a bare `<error>X</error>`."""
    node = root.find("error")
    if node is None:
        return None
    msg = node.findtext("error_msg")
    return (msg or node.text or "").strip() or "UNKNOWN"


class SkrillRefundError(Exception):
    """Gateway refused to open a refund session."""

    def __init__(self, error_code: str):
        super().__init__(error_code)
        self.error_code = error_code


class SkrillRefundSession:
    """Prepare/execute pair for one refund against the merchant refund API."""

    def __init__(self, env: SkrillEnvironment, http: GatewayHttpClient, *, merchant_email: Optional[str], status_url: Optional[str] = None):
        self._env = env
        self._http = http
        self._merchant_email = merchant_email
        self._status_url = status_url

    async def prepare(self, transaction_id: str) -> str:
        data = {
            "action": "prepare",
            "email": self._merchant_email or "",
            "password": hashlib.md5((self._env.api_password or "").encode("utf-8")).hexdigest(),
            "transaction_id": transaction_id,
        }
        if self._status_url:
            data["refund_status_url"] = self._status_url
        response = await self._http.request("POST", self._env.refund_url, data=data)
        root = _parse_xml(response.text, self._http.provider)
        error = _error_text(root)
        if error:
            raise SkrillRefundError(error)
        sid = (root.findtext("sid") or "").strip()
        if not sid:
            raise GatewayResponseError(
                "Refund prepare response carries no sid",
                provider=self._http.provider,
                status_code=response.status_code,
            )
        return sid

    async def execute(self, sid: str) -> tuple[int, Optional[str]]:
        """Return (status code, error code) reported for the refund."""
        response = await self._http.request("POST", self._env.refund_url, data={"action": "refund", "sid": sid})
        root = _parse_xml(response.text, self._http.provider)
        raw_status = (root.findtext("status") or "").strip()
        try:
            status = int(raw_status)
        except ValueError as exc:
            raise GatewayResponseError(
                "Refund response carries no numeric status",
                provider=self._http.provider,
                status_code=response.status_code,
                details={"status": raw_status},
            ) from exc
        error = _error_text(root) or (root.findtext("failed_reason_code") or "").strip() or None
        return status, error


class SkrillProvider:
    name = ProviderVariant.SKRILL.value

    def __init__(self, env: SkrillEnvironment, urls: PaymentUrls, *, language: str = "EN", http: Optional[GatewayHttpClient] = None):
        if not env.email:
            raise RuntimeError("SKRILL configuration incomplete")
        self._env = env
        self._urls = urls
        self._language = language
        self._http = http or GatewayHttpClient(self.name)

    async def aclose(self) -> None:
        await self._http.aclose()

    def build_checkout_params(self, order: Order) -> dict[str, str]:
        params = {
            "pay_to_email": self._env.merchant_email(order.currency) or "",
            "pay_from_email": order.buyer_email,
            "status_url": self._urls.notify_for("skrill"),
            "language": self._language,
            "amount": format2(order.amount),
            "currency": order.currency,
            "transaction_id": order.number,
            "return_url": self._urls.success_for("skrill"),
            "cancel_url": self._urls.failure,
            "detail1_description": "item",
            "detail1_text": f"{format_quantity(order.quantity)} {order.product}",
            "prepare_only": "1",
        }
        if self._urls.logo:
            params["logo_url"] = self._urls.logo
        return params

    async def initiate_checkout(self, order: Order) -> CheckoutResult:
        logger.info("payment_create_request", provider=self.name, order_number=order.number)
        try:
            response = await self._http.request("POST", self._env.pay_url, data=self.build_checkout_params(order))
            sid = response.text.strip()
            if response.status_code != 200 or not _SID_RE.match(sid):
                raise GatewayResponseError(
                    "Session request rejected",
                    provider=self.name,
                    status_code=response.status_code,
                    details={"body": response.text[:500]},
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

        url = f"{self._env.pay_url}?{urlencode({'sid': sid})}"
        logger.info("payment_create_success", provider=self.name, order_number=order.number)
        return RedirectTarget(url=url, provider=self.name, order_number=order.number)

    async def process_refund(self, order: Order) -> RefundOutcome:
        session = SkrillRefundSession(
            self._env,
            self._http,
            merchant_email=self._env.merchant_email(order.currency),
            status_url=self._urls.notify_for("skrill"),
        )
        # Skrill identifies the payment by our order number unless it issued its own id
        transaction_id = order.transaction_id or order.number
        logger.info("refund_request", provider=self.name, order_number=order.number, transaction_id=transaction_id)
        try:
            sid = await session.prepare(transaction_id)
            status, error = await session.execute(sid)
            return self.map_refund_status(status, error)
        except SkrillRefundError as exc:
            logger.warning("refund_prepare_rejected", provider=self.name, order_number=order.number, error_code=exc.error_code)
            return RefundOutcome.error(skrill_error_text(exc.error_code), provider=self.name, code=exc.error_code)
        except UnknownRefundStatusError as exc:
            logger.error("refund_unknown_status", provider=self.name, order_number=order.number, status_code=exc.status_code)
            return RefundOutcome.error(exc.message, provider=self.name)
        except (GatewayTransportError, GatewayResponseError) as exc:
            logger.error("refund_failed", provider=self.name, order_number=order.number, error=exc.message)
            return RefundOutcome.error(exc.message, provider=self.name)

    def map_refund_status(self, status: int, error: Optional[str] = None) -> RefundOutcome:
        gateway_status = SKRILL_REFUND_STATUSES.get(status)
        if gateway_status is None:
            raise UnknownRefundStatusError(status, provider=self.name)
        outcome = RefundStatus(GATEWAY_STATUS_TO_REFUND_OUTCOME[gateway_status])
        details = {"gateway_status": gateway_status, "status_code": status}
        if outcome is RefundStatus.SUCCESS:
            return RefundOutcome(status=outcome, message=REFUND_SUCCESS_MESSAGE, code=200, provider=self.name, details=details)
        if outcome is RefundStatus.PENDING:
            return RefundOutcome(status=outcome, message=REFUND_PENDING_MESSAGE, provider=self.name, details=details)
        message = skrill_error_text(error) if error else f"Refund {gateway_status}"
        return RefundOutcome(
            status=outcome,
            message=message,
            code=error if error else status,
            provider=self.name,
            details=details,
        )
