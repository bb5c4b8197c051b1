"""Discount codes and their per-order redemption links."""
from .entity import DiscountCode, DiscountToOrder, DiscountType

__all__ = ["DiscountCode", "DiscountToOrder", "DiscountType"]
