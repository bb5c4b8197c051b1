"""
Exceptions raised inside payment provider adapters.

They never cross the provider boundary: each adapter converts them into
`CheckoutFailure` / `RefundOutcome` values after logging the detail.
"""
from __future__ import annotations

from typing import Optional
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class GatewayTransportError(BusinessException):
    """Network failure, timeout, or an HTTP exchange that never completed."""

    def __init__(self, message: str, *, provider: str, details: Optional[dict] = None):
        full_details = {"provider": provider}
        if details:
            full_details.update(details)
        super().__init__(
            code=PaymentCode.PROVIDER_ERROR,
            message=message,
            error_type="GatewayTransportError",
            details=full_details,
        )


class GatewayResponseError(BusinessException):
    """The gateway answered, but the payload is missing or malformed."""

    def __init__(self, message: str, *, provider: str, status_code: int | None = None, details: Optional[dict] = None):
        full_details = {"provider": provider, "status_code": status_code}
        if details:
            full_details.update(details)
        super().__init__(
            code=PaymentCode.MALFORMED_RESPONSE,
            message=message,
            error_type="GatewayResponseError",
            details=full_details,
        )


class UnknownRefundStatusError(BusinessException):
    """Refund status code outside the gateway's documented table."""

    def __init__(self, status_code: object, *, provider: str):
        super().__init__(
            code=PaymentCode.UNKNOWN_STATUS,
            message=f"Unknown refund status code: {status_code}",
            error_type="UnknownRefundStatus",
            details={"provider": provider, "provider_code": status_code},
        )
        self.status_code = status_code
