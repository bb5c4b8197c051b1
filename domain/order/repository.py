"""
订单仓储接口 - 定义订单数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Order, OrderStatusEntry


class OrderRepository(ABC):
    """订单仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """创建订单（订单号唯一）"""
        pass

    @abstractmethod
    async def get_by_id(self, order_id: int, *, for_update: bool = False) -> Optional[Order]:
        """根据ID获取订单；for_update=True 时在当前事务内加行锁"""
        pass

    @abstractmethod
    async def get_by_number(self, number: str) -> Optional[Order]:
        """根据订单号获取订单"""
        pass

    @abstractmethod
    async def update(self, order: Order) -> Order:
        """更新订单的可变字段（状态/退款/结算）"""
        pass

    @abstractmethod
    async def add_status_entry(self, entry: OrderStatusEntry) -> OrderStatusEntry:
        """追加状态历史"""
        pass

    @abstractmethod
    async def list_status_entries(self, order_id: int) -> List[OrderStatusEntry]:
        """获取订单状态历史"""
        pass


class BlacklistRepository(ABC):
    """被封禁买家的订单登记（仅标记待审核，不阻断支付）"""

    @abstractmethod
    async def add_order(self, order: Order) -> None:
        pass
