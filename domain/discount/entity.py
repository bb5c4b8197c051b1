"""
折扣码领域实体
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from domain.common.money import round2, to_decimal


class DiscountType:
    GOLD = "gold"  # 固定数量奖励；其他类型均按百分比计算


@dataclass
class DiscountCode:
    """
    折扣码

    code 区分大小写；软删除（已使用/过期）的折扣码仍可被查询以便审计。
    """

    id: Optional[int]
    code: str
    type: str
    amount: Decimal
    deleted_at: Optional[datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def bonus_quantity(self, initial_quantity: Decimal) -> Decimal:
        """按原始购买数量计算奖励数量"""
        if self.type == DiscountType.GOLD:
            return to_decimal(self.amount)
        return round2(to_decimal(initial_quantity) * to_decimal(self.amount) / Decimal(100))


@dataclass
class DiscountToOrder:
    """折扣使用记录；存在即表示 order.quantity 已包含奖励"""

    id: Optional[int]
    discount_id: int
    order_id: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
