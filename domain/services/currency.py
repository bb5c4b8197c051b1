"""
Currency conversion contract consumed by pricing and profit calculation.

Rates are owned by an external collaborator; the domain only needs a pure
`convert_to_usd(currency, amount)`.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Protocol, runtime_checkable


@runtime_checkable
class CurrencyConverter(Protocol):

    def convert_to_usd(self, currency: str, amount: Decimal) -> Decimal: ...
