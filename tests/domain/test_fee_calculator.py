from decimal import Decimal

from domain.services.fee_calculator import FeeCalculator


class _Rates:
    def __init__(self):
        self.rates = {"EUR": Decimal("2"), "PLN": Decimal("0.5")}

    def convert_to_usd(self, currency, amount):
        return Decimal(amount) * self.rates[currency]


def _calc():
    return FeeCalculator(_Rates(), product_markup={1: Decimal("0.02"), 2: Decimal("0.01")})


def test_usd_profit():
    profit = _calc().calculate_profit(Decimal("10"), Decimal("1"), Decimal("0.05"), Decimal("100"))
    assert profit == Decimal("4.00")


def test_markup_added_for_configured_product():
    profit = _calc().calculate_profit(Decimal("10"), Decimal("1"), Decimal("0.05"), Decimal("100"), "USD", product_id=1)
    # sell price becomes 0.07
    assert profit == Decimal("2.00")


def test_fee_free_currency_converted_without_exchange_cost():
    profit = _calc().calculate_profit(Decimal("10"), Decimal("1"), Decimal("0.05"), Decimal("100"), "EUR")
    # 20 - 2 - 5
    assert profit == Decimal("13.00")


def test_other_currency_pays_exchange_cost():
    profit = _calc().calculate_profit(Decimal("100"), Decimal("0"), Decimal("0.10"), Decimal("100"), "PLN")
    # 50 converted, minus 3% exchange cost, minus 10
    assert profit == Decimal("38.50")
