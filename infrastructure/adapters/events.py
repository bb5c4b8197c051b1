"""Event publisher that records order events in the structured log."""
from __future__ import annotations

from dataclasses import asdict

from core.logging_config import get_logger
from domain.order.events import OrderEvent


logger = get_logger(__name__)


class LoggingEventPublisher:

    async def publish(self, event: OrderEvent) -> None:
        payload = asdict(event)
        payload["occurred_at"] = event.occurred_at.isoformat()
        logger.info("order_event", event_type=type(event).__name__, **payload)
