"""
Order domain events.

Dataclass events record order lifecycle facts for external subscribers
(buyer email, inventory reconciliation). Domain remains free of infrastructure imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional
import uuid


@dataclass
class OrderEvent:
    order_id: int
    order_number: str
    provider: str
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class OrderRefunded(OrderEvent):
    buyer_id: Optional[int] = None
    buyer_email: str = ""
    amount: str = ""
    currency: str = ""
    manager_id: Optional[int] = None
