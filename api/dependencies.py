"""
API依赖项 - 组装应用服务（composition root）
"""
from application.services.checkout_service import CheckoutService
from application.services.provider_selector import ProviderSelector
from application.services.refund_service import RefundService
from application.services.settlement_service import SettlementService
from core.settings import payment_settings
from domain.services.fee_calculator import FeeCalculator
from infrastructure.adapters.events import LoggingEventPublisher
from infrastructure.adapters.geolocation import NullGeoLocator
from infrastructure.adapters.order_numbers import make_order_number
from infrastructure.adapters.rates import StaticRateConverter
from infrastructure.external.payments import get_payment_provider
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


def get_provider_selector() -> ProviderSelector:
    return ProviderSelector(payment_settings.gateway_a_aliases)


def get_currency_converter() -> StaticRateConverter:
    return StaticRateConverter(payment_settings.usd_rates)


async def get_checkout_service() -> CheckoutService:
    return CheckoutService(
        uow_factory=SQLAlchemyUnitOfWork,
        selector=get_provider_selector(),
        provider_factory=get_payment_provider,
        converter=get_currency_converter(),
        geolocator=NullGeoLocator(),
        number_generator=make_order_number,
        surcharge_methods=payment_settings.surcharge_methods,
    )


async def get_refund_service() -> RefundService:
    return RefundService(
        uow_factory=SQLAlchemyUnitOfWork,
        selector=get_provider_selector(),
        provider_factory=get_payment_provider,
        publisher=LoggingEventPublisher(),
    )


async def get_settlement_service() -> SettlementService:
    profit = payment_settings.profit
    calculator = FeeCalculator(
        get_currency_converter(),
        product_markup=profit.product_markup,
        fee_free_currencies=profit.fee_free_currencies,
        exchange_cost_percent=profit.exchange_cost_percent,
    )
    return SettlementService(uow_factory=SQLAlchemyUnitOfWork, fee_calculator=calculator)
