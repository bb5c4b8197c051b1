"""
Settlement: record what the gateway actually collected for an order.

Runs once the gateway confirms a payment and reports its fee. Only the
settlement fields change; the checkout snapshot (amounts, usd_amount,
provider) is never recomputed.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Callable

from application.dtos.payments import PaymentConfirmation, SettlementResult
from core.logging_config import get_logger
from domain.common.exceptions import OrderAlreadyRefundedException, OrderNotFoundException
from domain.common.money import round2
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import GatewayStatus
from domain.services.fee_calculator import FeeCalculator


logger = get_logger(__name__)


class SettlementService:

    def __init__(self, *, uow_factory: Callable[..., AbstractUnitOfWork], fee_calculator: FeeCalculator) -> None:
        self._uow_factory = uow_factory
        self._fee_calculator = fee_calculator

    async def confirm_payment(self, confirmation: PaymentConfirmation) -> SettlementResult:
        async with self._uow_factory() as uow:
            order = await uow.order_repository.get_by_id(confirmation.order_id, for_update=True)
            if order is None:
                raise OrderNotFoundException(confirmation.order_id)
            if order.is_refunded:
                raise OrderAlreadyRefundedException(order.id)

            product = await uow.product_repository.get_by_id(order.product_id)
            cost_price = product.cost_price if product else Decimal("0")
            profit = self._fee_calculator.calculate_profit(
                confirmation.payment_sum,
                confirmation.fee,
                cost_price,
                order.quantity,
                order.currency,
                order.product_id,
            )
            order.record_settlement(
                fee=round2(confirmation.fee),
                profit=round2(profit),
                payment_status=GatewayStatus(confirmation.payment_status),
                sale_id=confirmation.sale_id,
                transaction_id=confirmation.transaction_id,
            )
            order = await uow.order_repository.update(order)

        logger.info(
            "order_settled",
            order_id=order.id,
            provider=order.payment_provider,
            payment_status=order.payment_status.value,
            fee=str(order.fee),
            profit=str(order.profit),
        )
        return SettlementResult(
            order_id=order.id,
            order_number=order.number,
            payment_status=order.payment_status.value,
            fee=order.fee,
            profit=order.profit,
        )
