"""SQLAlchemy Unit of Work：一次结账/退款/结算对应一个事务"""
from __future__ import annotations

from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, AsyncSessionTransaction

from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.catalog_repository import (
    SQLAlchemyDiscountRepository,
    SQLAlchemyProductRepository,
)
from infrastructure.repositories.order_repository import (
    SQLAlchemyBlacklistRepository,
    SQLAlchemyOrderRepository,
)


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """
    每次进入上下文创建新会话；退出时提交或回滚并关闭会话。

    只读模式不显式开启事务，用于结账前的商品与折扣码查询。
    行锁（SELECT ... FOR UPDATE）在事务结束时释放。
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self.session: Optional[AsyncSession] = None
        self._transaction: Optional[AsyncSessionTransaction] = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self.session = self._session_factory()
        self.order_repository = SQLAlchemyOrderRepository(self.session)
        self.blacklist_repository = SQLAlchemyBlacklistRepository(self.session)
        self.discount_repository = SQLAlchemyDiscountRepository(self.session)
        self.product_repository = SQLAlchemyProductRepository(self.session)
        if not self._readonly:
            self._transaction = await self.session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            if self.session is not None:
                await self.session.close()
            self.session = None
            self._transaction = None

    async def commit(self) -> None:
        if not self._readonly and self.session is not None and self.session.in_transaction():
            await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self.session is not None and self.session.in_transaction():
            await self.session.rollback()
        self._committed = False
