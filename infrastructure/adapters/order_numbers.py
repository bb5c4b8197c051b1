"""Order number generation."""
from __future__ import annotations

import secrets
from datetime import datetime, timezone


def make_order_number() -> str:
    """Time-ordered, collision-resistant number, e.g. ``20241019153045A1B2C3``."""
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{stamp}{secrets.token_hex(3).upper()}"
