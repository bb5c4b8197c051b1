"""Order aggregate: checkout snapshot, status history and refund events."""
from .entity import Order, OrderStatus, GatewayStatus, OrderStatusEntry
from .events import OrderRefunded

__all__ = ["Order", "OrderStatus", "GatewayStatus", "OrderStatusEntry", "OrderRefunded"]
