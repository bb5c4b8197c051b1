"""
利润计算 - 网关上报实际手续费后计算订单利润（纯算术）
"""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Mapping, Optional

from domain.common.money import to_decimal
from .currency import CurrencyConverter


class FeeCalculator:
    """
    规则：
    1. 部分商品的售价需加上固定加价（按商品ID配置）
    2. 非 USD 金额先换算为 USD
    3. 非免费币种扣除兑换成本（默认 3%）
    4. 利润 = 实收 - 手续费 - 数量 × 单位售价
    """

    def __init__(
        self,
        converter: CurrencyConverter,
        *,
        product_markup: Optional[Mapping[int, Decimal]] = None,
        fee_free_currencies: Iterable[str] = ("USD", "GBP", "EUR"),
        exchange_cost_percent: Decimal = Decimal("3"),
    ) -> None:
        self._converter = converter
        self._markup = {int(k): to_decimal(v) for k, v in (product_markup or {}).items()}
        self._fee_free = {c.upper() for c in fee_free_currencies}
        self._exchange_cost = to_decimal(exchange_cost_percent) / Decimal(100)

    def calculate_profit(
        self,
        payment_sum: Decimal,
        fee: Decimal,
        product_sell_price: Decimal,
        quantity: Decimal,
        currency: str = "USD",
        product_id: Optional[int] = None,
    ) -> Decimal:
        payment_sum = to_decimal(payment_sum)
        fee = to_decimal(fee)
        sell_price = to_decimal(product_sell_price)
        currency = currency.upper()

        if product_id is not None:
            sell_price += self._markup.get(product_id, Decimal("0"))

        if currency != "USD":
            payment_sum = self._converter.convert_to_usd(currency, payment_sum)
            fee = self._converter.convert_to_usd(currency, fee)

        if currency not in self._fee_free:
            payment_sum -= payment_sum * self._exchange_cost

        return payment_sum - fee - (to_decimal(quantity) * sell_price)
