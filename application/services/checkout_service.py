"""
Checkout use-case: turn a priced session into a persisted order and a
gateway redirect.

Ordering matters: the order is committed before any gateway call, so a
redirect always refers to a stored order. Geolocation, the blacklist flag
and the discount link are best effort and never block the payment.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Callable, Mapping, Optional, Tuple

from application.dtos.payments import (
    BuyerContext,
    CheckoutFailure,
    CheckoutFailureReason,
    CheckoutResult,
    EmailRequired,
    Geolocation,
    PricingContext,
)
from application.ports.collaborators import CurrencyConverter, GeoLocator, OrderNumberGenerator
from application.ports.payment_provider import PaymentProvider
from application.services.provider_selector import ProviderSelector, ProviderVariant
from core.logging_config import get_logger
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.discount.entity import DiscountCode
from domain.order.entity import Order, OrderStatus, OrderStatusEntry
from domain.order.pricing import QuantityBreakdown, compute_quantity


logger = get_logger(__name__)


def resolve_buyer_email(buyer: BuyerContext, request_email: Optional[str]) -> Optional[str]:
    """Signed-in user's email, then the submitted one, then the one kept in session."""
    for candidate in (buyer.email if buyer.is_authenticated else None, request_email, buyer.session_email):
        if candidate and candidate.strip():
            return candidate.strip()
    return None


class CheckoutService:

    def __init__(
        self,
        *,
        uow_factory: Callable[..., AbstractUnitOfWork],
        selector: ProviderSelector,
        provider_factory: Callable[[ProviderVariant], PaymentProvider],
        converter: CurrencyConverter,
        geolocator: GeoLocator,
        number_generator: OrderNumberGenerator,
        surcharge_methods: Optional[Mapping[str, Decimal]] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._selector = selector
        self._provider_factory = provider_factory
        self._converter = converter
        self._geolocator = geolocator
        self._number_generator = number_generator
        self._surcharge_methods = dict(surcharge_methods or {})

    async def checkout(
        self,
        buyer: BuyerContext,
        pricing: PricingContext,
        method: str,
        discount_code: Optional[str] = None,
        request_email: Optional[str] = None,
        ip: Optional[str] = None,
    ) -> CheckoutResult:
        email = resolve_buyer_email(buyer, request_email)
        if not email:
            logger.info("checkout_email_required", user_id=buyer.user_id)
            return EmailRequired()

        geo = await self._locate(ip)

        async with self._uow_factory(readonly=True) as uow:
            product = await uow.product_repository.get_published(pricing.product_id)
            discount: Optional[DiscountCode] = None
            if discount_code:
                discount = await uow.discount_repository.get_by_code(discount_code, include_deleted=True)

        if product is None:
            logger.warning("checkout_product_unavailable", product_id=pricing.product_id)
            return CheckoutFailure(reason=CheckoutFailureReason.PRODUCT_UNAVAILABLE, message="Product is not available")
        if discount_code and discount is None:
            logger.info("checkout_discount_not_found", code=discount_code)

        number = self._number_generator()
        priced = self._price(number, pricing, method, discount)
        if priced is None:
            return CheckoutFailure(reason=CheckoutFailureReason.PRICING_ERROR)
        quantity, usd_amount = priced

        variant = self._selector.select(method)
        try:
            provider = self._provider_factory(variant)
        except Exception as exc:
            logger.error("checkout_provider_unavailable", provider=variant.value, error=str(exc))
            return CheckoutFailure(reason=CheckoutFailureReason.PAYMENT_INITIATION_FAILED, provider=variant.value)

        try:
            order = Order(
                id=None,
                number=number,
                product_id=product.id,
                product=product.title,
                price=pricing.unit_price,
                quantity=quantity.final,
                amount=pricing.order_price,
                currency=pricing.currency,
                usd_amount=usd_amount,
                buyer_id=buyer.user_id,
                buyer_email=email,
                buyer_name=buyer.name if buyer.is_authenticated and buyer.name else email,
                payment=method,
                payment_provider=provider.name,
                product_url=product.url,
                nick=pricing.nick,
                ip=ip,
                city=geo.city,
                country=geo.country,
            )

            order = await self._persist(order)
            if order is None:
                return CheckoutFailure(reason=CheckoutFailureReason.PERSISTENCE_ERROR, provider=provider.name)

            logger.info(
                "checkout_order_created",
                order_id=order.id,
                order_number=order.number,
                provider=order.payment_provider,
                quantity=str(order.quantity),
                bonus=str(quantity.bonus),
            )

            if buyer.is_banned:
                await self._flag_blacklisted(order)
            if discount is not None:
                await self._link_discount(discount, order)

            return await provider.initiate_checkout(order)
        finally:
            await provider.aclose()

    def _price(
        self,
        number: str,
        pricing: PricingContext,
        method: str,
        discount: Optional[DiscountCode],
    ) -> Optional[Tuple[QuantityBreakdown, Decimal]]:
        """Adjusted quantity and usd_amount, or None when the order cannot be priced."""
        try:
            quantity = compute_quantity(pricing.quantity, method, self._surcharge_methods, discount)
            if pricing.currency != "USD":
                usd_amount = self._converter.convert_to_usd(pricing.currency, pricing.order_price)
            else:
                usd_amount = pricing.order_price
        except Exception as exc:
            # unrated currency or a discount pushing the quantity below zero
            logger.error(
                "checkout_pricing_failed",
                order_number=number,
                product_id=pricing.product_id,
                currency=pricing.currency,
                method=method,
                discount_id=discount.id if discount is not None else None,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None
        return quantity, usd_amount

    async def _locate(self, ip: Optional[str]) -> Geolocation:
        if not ip:
            return Geolocation()
        try:
            return await self._geolocator.detect(ip)
        except Exception as exc:
            logger.warning("geolocation_lookup_failed", ip=ip, error=str(exc))
            return Geolocation()

    async def _persist(self, order: Order) -> Optional[Order]:
        try:
            async with self._uow_factory() as uow:
                created = await uow.order_repository.create(order)
                await uow.order_repository.add_status_entry(
                    OrderStatusEntry(id=None, order_id=created.id, status=OrderStatus.CREATED)
                )
            return created
        except Exception as exc:
            # buyer only sees the generic failure; detail stays in the log
            logger.error(
                "checkout_persist_failed",
                order_number=order.number,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return None

    async def _flag_blacklisted(self, order: Order) -> None:
        try:
            async with self._uow_factory() as uow:
                await uow.blacklist_repository.add_order(order)
            logger.warning("checkout_banned_buyer", order_id=order.id, user_id=order.buyer_id)
        except Exception as exc:
            logger.error("blacklist_flag_failed", order_id=order.id, error=str(exc))

    async def _link_discount(self, discount: DiscountCode, order: Order) -> None:
        try:
            async with self._uow_factory() as uow:
                await uow.discount_repository.link_to_order(discount.id, order.id)
        except Exception as exc:
            logger.error("discount_link_failed", order_id=order.id, discount_id=discount.id, error=str(exc))
