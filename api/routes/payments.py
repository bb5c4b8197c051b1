"""
Payments API routes.

Thin adapters over the checkout, refund and settlement services: parse the
request, call the service, turn the typed result into an HTTP response.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel, Field
from pydantic.types import condecimal

from api.dependencies import get_checkout_service, get_refund_service, get_settlement_service
from api.middleware.request_id import get_client_ip
from application.dtos.payments import (
    BuyerContext,
    CheckoutFailure,
    EmailRequired,
    PaymentConfirmation,
    PricingContext,
    RefundRequest,
)
from application.services.checkout_service import CheckoutService
from application.services.refund_service import RefundService
from application.services.settlement_service import SettlementService
from core.logging_config import get_logger
from core.response import success_response
from core.settings import payment_settings
from domain.order.entity import GatewayStatus


router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger(__name__)


class CheckoutPayload(BaseModel):
    payment_method: Optional[str] = Field(default=None, description="Buyer-chosen method, e.g. G2APay, BTC, PSC, Skrill")
    discount_code: Optional[str] = None
    user_email: Optional[str] = None
    buyer: BuyerContext = Field(default_factory=BuyerContext)
    pricing: PricingContext


class SettlementPayload(BaseModel):
    payment_sum: condecimal(ge=0)  # type: ignore[valid-type]
    fee: condecimal(ge=0) = Decimal("0")  # type: ignore[valid-type]
    sale_id: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_status: GatewayStatus = GatewayStatus.COMPLETE


@router.post("/checkout", summary="Create order and redirect to the gateway", response_class=RedirectResponse)
async def checkout(
    payload: CheckoutPayload,
    request: Request,
    service: CheckoutService = Depends(get_checkout_service),
):
    ip = getattr(request.state, "client_ip", None) or get_client_ip(request)
    result = await service.checkout(
        payload.buyer,
        payload.pricing,
        payload.payment_method or payment_settings.default_method,
        discount_code=payload.discount_code,
        request_email=payload.user_email,
        ip=ip,
    )
    if isinstance(result, EmailRequired):
        return RedirectResponse(payment_settings.urls.sign_in, status_code=302)
    if isinstance(result, CheckoutFailure):
        logger.warning("checkout_failed", reason=result.reason.value, provider=result.provider)
        return RedirectResponse(payment_settings.urls.error_page, status_code=302)
    return RedirectResponse(result.url, status_code=302)


@router.post("/refunds", summary="Refund an order")
async def refund(payload: RefundRequest, service: RefundService = Depends(get_refund_service)):
    result = await service.refund(payload.order_id, payload.operator_id)
    return JSONResponse(content=result.model_dump(mode="json", exclude_none=True))


@router.post("/orders/{order_id}/settlement", summary="Record gateway-confirmed payment")
async def settle(
    order_id: int,
    payload: SettlementPayload,
    service: SettlementService = Depends(get_settlement_service),
):
    confirmation = PaymentConfirmation(order_id=order_id, **payload.model_dump(mode="json"))
    result = await service.confirm_payment(confirmation)
    return success_response(data=result.model_dump(mode="json"))
