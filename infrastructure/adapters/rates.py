"""Currency conversion backed by a configured rate table."""
from __future__ import annotations

from decimal import Decimal
from typing import Mapping

from domain.common.exceptions import DomainValidationException
from domain.common.money import round2, to_decimal


class StaticRateConverter:
    """`rates` maps a currency to the USD value of one unit of it."""

    def __init__(self, rates: Mapping[str, Decimal]):
        self._rates = {k.upper(): to_decimal(v) for k, v in rates.items()}

    def convert_to_usd(self, currency: str, amount: Decimal) -> Decimal:
        code = (currency or "").upper()
        if code == "USD":
            return to_decimal(amount)
        rate = self._rates.get(code)
        if rate is None:
            raise DomainValidationException(f"No USD rate for currency {code}", field="currency")
        return round2(to_decimal(amount) * rate)
