"""
折扣仓储接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import DiscountCode, DiscountToOrder


class DiscountRepository(ABC):

    @abstractmethod
    async def get_by_code(self, code: str, *, include_deleted: bool = True) -> Optional[DiscountCode]:
        """按 code 精确查询（默认包含软删除记录）"""
        pass

    @abstractmethod
    async def get_link(self, discount_id: int, order_id: int) -> Optional[DiscountToOrder]:
        pass

    @abstractmethod
    async def link_to_order(self, discount_id: int, order_id: int) -> DiscountToOrder:
        """记录折扣使用；同一 (discount_id, order_id) 重复调用返回已有记录"""
        pass
