"""Infrastructure models package exports."""
from .base import Base, metadata
from .order import OrderModel, OrderStatusModel, BlacklistModel
from .catalog import ProductModel, DiscountCodeModel, DiscountToOrderModel

__all__ = [
    "Base",
    "metadata",
    "OrderModel",
    "OrderStatusModel",
    "BlacklistModel",
    "ProductModel",
    "DiscountCodeModel",
    "DiscountToOrderModel",
]
