"""
Payment provider port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements one adapter
per gateway. Variants share the capability set only, never gateway fields.
"""
from __future__ import annotations

from typing import Protocol, Union, runtime_checkable

from application.dtos.payments import CheckoutFailure, RedirectTarget, RefundOutcome
from domain.order.entity import Order


@runtime_checkable
class PaymentProvider(Protocol):
    """Gateway protocol for third-party payment providers.

    Implementations must normalize every transport or payload problem into
    the returned value; they never raise to the orchestrators.
    """

    name: str

    async def initiate_checkout(self, order: Order) -> Union[RedirectTarget, CheckoutFailure]: ...

    async def process_refund(self, order: Order) -> RefundOutcome: ...

    async def aclose(self) -> None: ...
