"""
Ports for external collaborators of checkout and refund.

Currency rates, geolocation, order numbering and notification delivery are
owned elsewhere; the application only sees these contracts.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable

from application.dtos.payments import Geolocation
from domain.order.events import OrderEvent
from domain.services.currency import CurrencyConverter


@runtime_checkable
class GeoLocator(Protocol):

    async def detect(self, ip: str) -> Geolocation: ...


@runtime_checkable
class OrderNumberGenerator(Protocol):

    def __call__(self) -> str: ...


@runtime_checkable
class EventPublisher(Protocol):

    async def publish(self, event: OrderEvent) -> None: ...


__all__ = ["CurrencyConverter", "GeoLocator", "OrderNumberGenerator", "EventPublisher"]
