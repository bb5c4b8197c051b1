"""
Quantity adjustments applied at checkout.

Both adjustments work on the purchased *quantity*; price and amount are
never touched. The discount bonus is always computed from the initial
quantity and added on top of any surcharge offset.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from domain.common.exceptions import DomainValidationException
from domain.common.money import to_decimal
from domain.discount.entity import DiscountCode


@dataclass(frozen=True)
class QuantityBreakdown:
    initial: Decimal
    surcharge_offset: Decimal
    bonus: Decimal

    @property
    def final(self) -> Decimal:
        return self.initial - self.surcharge_offset + self.bonus


def surcharge_percent(method: str, surcharge_methods: Mapping[str, Decimal]) -> Decimal:
    """Percentage of quantity absorbed by a fee-bearing payment method (0 if none)."""
    value = surcharge_methods.get(method)
    return to_decimal(value) if value is not None else Decimal("0")


def compute_quantity(
    initial_quantity: Decimal,
    method: str,
    surcharge_methods: Mapping[str, Decimal],
    discount: Optional[DiscountCode] = None,
) -> QuantityBreakdown:
    initial = to_decimal(initial_quantity)
    if initial < 0:
        raise DomainValidationException(f"quantity must not be negative: {initial}", field="quantity")

    offset = initial * surcharge_percent(method, surcharge_methods) / Decimal(100)
    bonus = discount.bonus_quantity(initial) if discount is not None else Decimal("0")

    breakdown = QuantityBreakdown(initial=initial, surcharge_offset=offset, bonus=bonus)
    if breakdown.final < 0:
        raise DomainValidationException(
            f"adjusted quantity must not be negative: {breakdown.final}",
            field="quantity",
        )
    return breakdown
