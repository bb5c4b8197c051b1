"""
Payment method -> provider variant selection.

Pure and stateless: the same identifier always yields the same variant.
Variant values equal the provider display names, so an order's stored
`payment_provider` resolves back to the gateway that processed it.
"""
from __future__ import annotations

from enum import Enum
from typing import Iterable

DEFAULT_GATEWAY_A_ALIASES = ("btc", "g2apay", "bancontact")


class ProviderVariant(str, Enum):
    G2APAY = "G2APay"
    SKRILL = "Skrill"


class ProviderSelector:

    def __init__(self, gateway_a_aliases: Iterable[str] = DEFAULT_GATEWAY_A_ALIASES) -> None:
        self._aliases = frozenset(a.lower() for a in gateway_a_aliases)

    def select(self, method: str) -> ProviderVariant:
        # unknown methods fall back to Skrill
        if (method or "").lower() in self._aliases:
            return ProviderVariant.G2APAY
        return ProviderVariant.SKRILL
