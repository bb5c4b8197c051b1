"""
Operator-initiated refund of a single order.

The order row stays locked for the whole gateway call, so two operators
cannot refund the same order concurrently; a committed `Refunded` status
short-circuits any later attempt before the gateway is contacted.
"""
from __future__ import annotations

from typing import Callable, Optional

from application.dtos.payments import RefundOutcome, RefundResponse, RefundStatus
from application.ports.collaborators import EventPublisher
from application.ports.payment_provider import PaymentProvider
from application.services.provider_selector import ProviderSelector, ProviderVariant
from core.logging_config import get_logger
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order, OrderStatus, OrderStatusEntry
from domain.order.events import OrderRefunded


logger = get_logger(__name__)

GENERIC_FAILURE = "Something went wrong"


class RefundService:

    def __init__(
        self,
        *,
        uow_factory: Callable[..., AbstractUnitOfWork],
        selector: ProviderSelector,
        provider_factory: Callable[[ProviderVariant], PaymentProvider],
        publisher: EventPublisher,
    ) -> None:
        self._uow_factory = uow_factory
        self._selector = selector
        self._provider_factory = provider_factory
        self._publisher = publisher

    async def refund(self, order_id: Optional[int], operator_id: Optional[int]) -> RefundResponse:
        if not order_id:
            return RefundResponse(code=500, message=GENERIC_FAILURE)

        event: Optional[OrderRefunded] = None
        async with self._uow_factory() as uow:
            order = await uow.order_repository.get_by_id(order_id, for_update=True)
            if order is None:
                logger.warning("refund_order_not_found", order_id=order_id, operator_id=operator_id)
                return RefundResponse(code=500, message=GENERIC_FAILURE)
            if order.is_refunded:
                logger.info("refund_already_refunded", order_id=order_id, operator_id=operator_id)
                return RefundResponse(code=500, message="Order already refunded")

            order.assign_manager(operator_id)
            outcome = await self._call_provider(order)
            if outcome is None:
                return RefundResponse(code=500, message=GENERIC_FAILURE)

            logger.info(
                "refund_outcome",
                order_id=order.id,
                provider=order.payment_provider,
                status=outcome.status.value,
                message=outcome.message,
                code=outcome.code,
            )

            if outcome.status is not RefundStatus.SUCCESS:
                return self._non_success_response(outcome)

            order.mark_refunded()
            await uow.order_repository.update(order)
            await uow.order_repository.add_status_entry(
                OrderStatusEntry(id=None, order_id=order.id, status=OrderStatus.REFUNDED)
            )
            event = OrderRefunded(
                order_id=order.id,
                order_number=order.number,
                provider=order.payment_provider,
                buyer_id=order.buyer_id,
                buyer_email=order.buyer_email,
                amount=str(order.amount),
                currency=order.currency,
                manager_id=order.manager_id,
            )

        # published only after the Refunded status is committed
        await self._publish(event)
        return RefundResponse(code=200, message="Refunded", user_id=order.buyer_id)

    async def _call_provider(self, order: Order) -> Optional[RefundOutcome]:
        try:
            provider = self._provider_factory(self._selector.select(order.payment_provider))
        except Exception as exc:
            logger.error("refund_error", order_id=order.id, provider=order.payment_provider, error=str(exc))
            return None
        try:
            return await provider.process_refund(order)
        except Exception as exc:
            logger.error(
                "refund_error",
                order_id=order.id,
                provider=order.payment_provider,
                error=str(exc),
                exc_info=True,
            )
            return None
        finally:
            await provider.aclose()

    @staticmethod
    def _non_success_response(outcome: RefundOutcome) -> RefundResponse:
        if outcome.status is RefundStatus.FAILED:
            return RefundResponse(code=500, message=outcome.message, error_code=outcome.code)
        return RefundResponse(code=500, message=outcome.message)

    async def _publish(self, event: Optional[OrderRefunded]) -> None:
        if event is None:
            return
        try:
            await self._publisher.publish(event)
        except Exception as exc:
            logger.error("order_refunded_publish_failed", order_id=event.order_id, error=str(exc))
