"""
Payment DTOs (Pydantic v2) used at application boundaries.

Checkout and refund results are tagged values rather than exceptions:
callers branch on the returned type (checkout) or on `status` (refund).
"""
from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Literal, Optional, Union
from pydantic import BaseModel, Field, field_validator
from pydantic.types import condecimal

from domain.order.entity import GatewayStatus


class BuyerContext(BaseModel):
    """Who is buying, as resolved by the authentication layer."""
    user_id: Optional[int] = None
    email: Optional[str] = None
    name: Optional[str] = None
    is_banned: bool = False
    # email remembered from an earlier checkout attempt in the same session
    session_email: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None


class PricingContext(BaseModel):
    """Pricing computed earlier in the session; never taken from the payment form."""
    product_id: int
    unit_price: condecimal(ge=0)  # type: ignore[valid-type]
    quantity: condecimal(ge=0)  # type: ignore[valid-type]
    currency: str = Field(default="USD")
    order_price: condecimal(ge=0)  # type: ignore[valid-type]
    nick: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _upper_and_validate_currency(cls, v: str) -> str:
        u = (v or "").upper()
        if len(u) != 3 or not u.isalpha():
            raise ValueError("currency must be ISO-4217 alpha-3")
        return u


class Geolocation(BaseModel):
    city: str = ""
    country: str = ""


# ---------------------------------------------------------------------------
# Checkout results
# ---------------------------------------------------------------------------
class CheckoutFailureReason(str, Enum):
    PAYMENT_INITIATION_FAILED = "payment_initiation_failed"
    PERSISTENCE_ERROR = "persistence_error"
    PRODUCT_UNAVAILABLE = "product_unavailable"
    PRICING_ERROR = "pricing_error"


class RedirectTarget(BaseModel):
    kind: Literal["redirect"] = "redirect"
    url: str
    provider: str
    order_number: Optional[str] = None


class EmailRequired(BaseModel):
    """Recoverable branch: ask the buyer to sign in or supply an email."""
    kind: Literal["email_required"] = "email_required"
    message: str = "Email is required to continue the checkout"


class CheckoutFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    reason: CheckoutFailureReason
    message: str = "Payment initiation failed"
    provider: Optional[str] = None


CheckoutResult = Union[RedirectTarget, EmailRequired, CheckoutFailure]


# ---------------------------------------------------------------------------
# Refund results
# ---------------------------------------------------------------------------
class RefundStatus(str, Enum):
    SUCCESS = "success"
    PENDING = "pending"
    FAILED = "failed"
    ERROR = "error"


class RefundOutcome(BaseModel):
    """Canonical refund result produced at the provider boundary."""
    status: RefundStatus
    message: str = ""
    code: Optional[Union[int, str]] = None
    provider: Optional[str] = None
    details: Optional[dict[str, Any]] = None

    @classmethod
    def error(cls, message: str, *, provider: Optional[str] = None, code: Optional[Union[int, str]] = None) -> "RefundOutcome":
        return cls(status=RefundStatus.ERROR, message=message, code=code, provider=provider)


class RefundRequest(BaseModel):
    order_id: Optional[int] = None
    operator_id: Optional[int] = None


class RefundResponse(BaseModel):
    """Result surface returned to the operator (JSON)."""
    code: int
    message: str
    user_id: Optional[int] = None
    error_code: Optional[Union[int, str]] = None


# ---------------------------------------------------------------------------
# Settlement
# ---------------------------------------------------------------------------
class PaymentConfirmation(BaseModel):
    """Gateway-confirmed payment, reported once the real fee is known."""
    order_id: int
    payment_sum: condecimal(ge=0)  # type: ignore[valid-type]
    fee: condecimal(ge=0) = Decimal("0")  # type: ignore[valid-type]
    sale_id: Optional[str] = None
    transaction_id: Optional[str] = None
    payment_status: str = "complete"

    @field_validator("payment_status")
    @classmethod
    def _known_gateway_status(cls, v: str) -> str:
        allowed = {s.value for s in GatewayStatus}
        v = (v or "").lower()
        if v not in allowed:
            raise ValueError(f"payment_status must be one of {sorted(allowed)}")
        return v


class SettlementResult(BaseModel):
    order_id: int
    order_number: str
    payment_status: str
    fee: Decimal
    profit: Decimal
