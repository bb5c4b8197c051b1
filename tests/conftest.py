"""Pytest bootstrap configuration.

Environment is pinned before any application settings are imported, and
in-memory repositories stand in for the database in service tests.
"""
import os

os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("PAYMENT__SANDBOX", "false")

from dataclasses import replace
from decimal import Decimal
from itertools import count
from typing import Optional

import pytest

from application.dtos.payments import (
    BuyerContext,
    Geolocation,
    PricingContext,
    RedirectTarget,
    RefundOutcome,
    RefundStatus,
)
from domain.common.exceptions import PersistenceException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.discount.entity import DiscountCode, DiscountToOrder
from domain.discount.repository import DiscountRepository
from domain.order.entity import Order
from domain.order.repository import BlacklistRepository, OrderRepository
from domain.product.entity import Product
from domain.product.repository import ProductRepository


class InMemoryStore:
    def __init__(self):
        self.orders: dict[int, Order] = {}
        self.status_entries = []
        self.products: dict[int, Product] = {}
        self.discounts: dict[str, DiscountCode] = {}
        self.links: list[DiscountToOrder] = []
        self.blacklist: list[int] = []
        self.locked: list[int] = []
        self.commits = 0
        self.fail_create = False
        self.fail_blacklist = False
        self._ids = count(1)

    def next_id(self) -> int:
        return next(self._ids)


class FakeOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create(self, order):
        if self.store.fail_create:
            raise PersistenceException("insert failed", details={"driver": "connection reset"})
        created = replace(order, id=self.store.next_id())
        self.store.orders[created.id] = created
        return replace(created)

    async def get_by_id(self, order_id, *, for_update=False):
        if for_update:
            self.store.locked.append(order_id)
        order = self.store.orders.get(order_id)
        return replace(order) if order else None

    async def get_by_number(self, number):
        for order in self.store.orders.values():
            if order.number == number:
                return replace(order)
        return None

    async def update(self, order):
        self.store.orders[order.id] = replace(order)
        return replace(order)

    async def add_status_entry(self, entry):
        entry.id = self.store.next_id()
        self.store.status_entries.append(entry)
        return entry

    async def list_status_entries(self, order_id):
        return [e for e in self.store.status_entries if e.order_id == order_id]


class FakeBlacklistRepository(BlacklistRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def add_order(self, order):
        if self.store.fail_blacklist:
            raise RuntimeError("blacklist table unavailable")
        self.store.blacklist.append(order.id)


class FakeProductRepository(ProductRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_published(self, product_id):
        product = self.store.products.get(product_id)
        return product if product and product.published else None

    async def get_by_id(self, product_id):
        return self.store.products.get(product_id)


class FakeDiscountRepository(DiscountRepository):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_code(self, code, *, include_deleted=True):
        discount = self.store.discounts.get(code)
        if discount and discount.is_deleted and not include_deleted:
            return None
        return discount

    async def get_link(self, discount_id, order_id):
        for link in self.store.links:
            if link.discount_id == discount_id and link.order_id == order_id:
                return link
        return None

    async def link_to_order(self, discount_id, order_id):
        existing = await self.get_link(discount_id, order_id)
        if existing:
            return existing
        link = DiscountToOrder(id=self.store.next_id(), discount_id=discount_id, order_id=order_id)
        self.store.links.append(link)
        return link


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryStore, *, readonly: bool = False):
        super().__init__(readonly=readonly)
        self.store = store
        self.order_repository = FakeOrderRepository(store)
        self.discount_repository = FakeDiscountRepository(store)
        self.product_repository = FakeProductRepository(store)
        self.blacklist_repository = FakeBlacklistRepository(store)

    async def commit(self):
        self._committed = True
        self.store.commits += 1

    async def rollback(self):
        self._committed = False


class FakeProvider:
    """Records calls; returns canned results or raises."""

    def __init__(self, name, *, checkout_result=None, refund_outcome=None, refund_error: Optional[Exception] = None):
        self.name = name
        self.checkout_result = checkout_result
        self.refund_outcome = refund_outcome
        self.refund_error = refund_error
        self.checkout_orders = []
        self.refund_orders = []
        self.closed = False

    async def initiate_checkout(self, order):
        self.checkout_orders.append(order)
        if self.checkout_result is not None:
            return self.checkout_result
        return RedirectTarget(url=f"https://gateway.test/{self.name}?token=t", provider=self.name, order_number=order.number)

    async def process_refund(self, order):
        self.refund_orders.append(order)
        if self.refund_error is not None:
            raise self.refund_error
        return self.refund_outcome or RefundOutcome(status=RefundStatus.SUCCESS, message="ok", code=200, provider=self.name)

    async def aclose(self):
        self.closed = True


class ProviderFactory:
    """Builds (and remembers) one FakeProvider per variant."""

    def __init__(self, **provider_kwargs):
        self.provider_kwargs = provider_kwargs
        self.built = []

    def __call__(self, variant):
        provider = FakeProvider(variant.value, **self.provider_kwargs)
        self.built.append(provider)
        return provider


class FakeConverter:
    def __init__(self, rates=None):
        self.rates = rates or {"EUR": Decimal("1.10"), "GBP": Decimal("1.25")}
        self.calls = []

    def convert_to_usd(self, currency, amount):
        self.calls.append((currency, amount))
        return (Decimal(amount) * self.rates[currency]).quantize(Decimal("0.01"))


class FakeGeoLocator:
    def __init__(self, result=None, error: Optional[Exception] = None):
        self.result = result or Geolocation(city="Berlin", country="DE")
        self.error = error

    async def detect(self, ip):
        if self.error:
            raise self.error
        return self.result


class RecordingPublisher:
    def __init__(self):
        self.events = []

    async def publish(self, event):
        self.events.append(event)


def sequential_numbers():
    seq = count(1)
    return lambda: f"ORD-{next(seq):04d}"


@pytest.fixture
def store():
    s = InMemoryStore()
    s.products[7] = Product(id=7, title="RuneScape Gold", url="https://shop.test/rs-gold", cost_price=Decimal("0.08"))
    s.products[8] = Product(id=8, title="Retired item", published=False)
    return s


@pytest.fixture
def uow_factory(store):
    def _factory(**kwargs):
        return FakeUnitOfWork(store, **kwargs)
    return _factory


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def buyer():
    return BuyerContext(user_id=42, email="buyer@example.com", name="Buyer")


@pytest.fixture
def usd_pricing():
    return PricingContext(
        product_id=7,
        unit_price=Decimal("0.10"),
        quantity=Decimal("100"),
        currency="USD",
        order_price=Decimal("10.00"),
        nick="Zezima",
    )


def make_order(**overrides) -> Order:
    fields = dict(
        id=1,
        number="ORD-0001",
        product_id=7,
        product="RuneScape Gold",
        price=Decimal("0.10"),
        quantity=Decimal("100"),
        amount=Decimal("10.00"),
        currency="USD",
        usd_amount=Decimal("10.00"),
        buyer_id=42,
        buyer_email="buyer@example.com",
        buyer_name="Buyer",
        payment="G2APay",
        payment_provider="G2APay",
        product_url="https://shop.test/rs-gold",
    )
    fields.update(overrides)
    return Order(**fields)


@pytest.fixture
def order_factory():
    return make_order

