"""
Factory for payment providers.

The live/sandbox choice is made once here, and the provider receives a
single complete environment (endpoints and credentials together).
"""
from __future__ import annotations

from typing import Optional

import httpx

from application.ports.payment_provider import PaymentProvider
from application.services.provider_selector import ProviderVariant
from core.config import settings
from core.settings import PaymentSettings, payment_settings
from infrastructure.external.payments.http import GatewayHttpClient


def _http_client(provider: str, cfg: PaymentSettings, transport: Optional[httpx.AsyncBaseTransport]) -> GatewayHttpClient:
    return GatewayHttpClient(
        provider,
        timeouts=cfg.timeouts.model_dump(),
        retry={"max": cfg.retry.max, "base": cfg.retry.base_backoff},
        transport=transport,
    )


def get_payment_provider(
    variant: ProviderVariant,
    *,
    cfg: Optional[PaymentSettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PaymentProvider:
    cfg = cfg or payment_settings
    sandbox = cfg.sandbox_enabled(settings.ENVIRONMENT)
    variant = ProviderVariant(variant)
    if variant is ProviderVariant.G2APAY:
        from .g2apay_client import G2APayProvider
        return G2APayProvider(
            cfg.g2apay.active(sandbox),
            cfg.urls,
            http=_http_client(variant.value, cfg, transport),
        )
    if variant is ProviderVariant.SKRILL:
        from .skrill_client import SkrillProvider
        return SkrillProvider(
            cfg.skrill.active(sandbox),
            cfg.urls,
            language=cfg.skrill.language,
            http=_http_client(variant.value, cfg, transport),
        )
    raise ValueError(f"Unsupported payment provider: {variant}")
