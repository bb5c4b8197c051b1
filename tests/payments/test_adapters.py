import logging
from decimal import Decimal

import pytest

from domain.common.exceptions import DomainValidationException
from domain.order.events import OrderRefunded
from infrastructure.adapters.events import LoggingEventPublisher
from infrastructure.adapters.geolocation import NullGeoLocator
from infrastructure.adapters.order_numbers import make_order_number
from infrastructure.adapters.rates import StaticRateConverter
from infrastructure.external.payments import get_payment_provider
from application.services.provider_selector import ProviderVariant
from core.settings import G2APayEnvironment, PaymentSettings, SkrillEnvironment
from infrastructure.external.payments.g2apay_client import G2APayProvider
from infrastructure.external.payments.skrill_client import SkrillProvider


def test_static_rates_convert_and_round():
    converter = StaticRateConverter({"EUR": Decimal("1.085")})
    assert converter.convert_to_usd("eur", Decimal("10")) == Decimal("10.85")
    assert converter.convert_to_usd("USD", Decimal("3.3")) == Decimal("3.3")
    with pytest.raises(DomainValidationException):
        converter.convert_to_usd("XYZ", Decimal("1"))


@pytest.mark.asyncio
async def test_null_geolocator_reports_unknown_location():
    geo = await NullGeoLocator().detect("203.0.113.5")
    assert geo.city == "" and geo.country == ""


def test_order_numbers_are_unique():
    numbers = {make_order_number() for _ in range(50)}
    assert len(numbers) == 50


@pytest.mark.asyncio
async def test_logging_publisher_emits_event(caplog):
    caplog.set_level(logging.INFO)
    await LoggingEventPublisher().publish(OrderRefunded(order_id=1, order_number="ORD-1", provider="Skrill"))
    assert any("order_event" in record.getMessage() for record in caplog.records)


def test_factory_builds_configured_variants():
    cfg = PaymentSettings(
        g2apay={"live": G2APayEnvironment(api_hash="h", secret="s", merchant_email="m@x.test").model_dump()},
        skrill={"live": SkrillEnvironment(email="pay@x.test", api_password="p").model_dump()},
    )
    assert isinstance(get_payment_provider(ProviderVariant.G2APAY, cfg=cfg), G2APayProvider)
    skrill = get_payment_provider(ProviderVariant.SKRILL, cfg=cfg)
    assert isinstance(skrill, SkrillProvider)
    assert skrill.name == "Skrill"


def test_log_processor_masks_gateway_credentials():
    from core.logging_config import redact_secrets

    event = redact_secrets(None, "info", {"event": "x", "secret": "s3", "Authorization": "a;b", "order_id": 5})
    assert event["secret"] == "***"
    assert event["Authorization"] == "***"
    assert event["order_id"] == 5
