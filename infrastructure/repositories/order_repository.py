"""
订单仓储实现 - 使用SQLAlchemy实现数据访问
"""
from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.order.entity import Order, OrderStatus, GatewayStatus, OrderStatusEntry
from domain.order.repository import OrderRepository, BlacklistRepository
from infrastructure.models.order import OrderModel, OrderStatusModel, BlacklistModel
from core.logging_config import get_logger
from domain.common.exceptions import OrderNotFoundException, PersistenceException


logger = get_logger(__name__)

# 退款/结算可修改的字段；快照字段只在创建时写入
MUTABLE_FIELDS = (
    "status",
    "payment_status",
    "fee",
    "profit",
    "sale_id",
    "transaction_id",
    "manager_id",
    "city",
    "country",
    "risk",
    "ip_user_type",
    "ip_postal_code",
    "updated_at",
)


class SQLAlchemyOrderRepository(OrderRepository):
    """订单仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        """将数据库模型转换为领域实体"""
        return Order(
            id=model.id,
            number=model.number,
            product_id=model.product_id,
            product=model.product,
            price=model.price,
            quantity=model.quantity,
            amount=model.amount,
            currency=model.currency,
            usd_amount=model.usd_amount,
            buyer_id=model.buyer_id,
            buyer_email=model.buyer_email,
            buyer_name=model.buyer_name,
            payment=model.payment,
            payment_provider=model.payment_provider,
            status=OrderStatus(model.status),
            payment_status=GatewayStatus(model.payment_status),
            fee=model.fee,
            profit=model.profit,
            product_url=model.product_url,
            nick=model.nick,
            ip=model.ip,
            city=model.city,
            country=model.country,
            risk=model.risk,
            ip_user_type=model.ip_user_type,
            ip_postal_code=model.ip_postal_code,
            sale_id=model.sale_id,
            transaction_id=model.transaction_id,
            manager_id=model.manager_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Order) -> OrderModel:
        """将领域实体转换为数据库模型"""
        return OrderModel(
            id=entity.id,
            number=entity.number,
            product_id=entity.product_id,
            product=entity.product,
            product_url=entity.product_url,
            price=entity.price,
            quantity=entity.quantity,
            amount=entity.amount,
            currency=entity.currency,
            usd_amount=entity.usd_amount,
            buyer_id=entity.buyer_id,
            buyer_email=entity.buyer_email,
            buyer_name=entity.buyer_name,
            nick=entity.nick,
            payment=entity.payment,
            payment_provider=entity.payment_provider,
            status=entity.status.value,
            payment_status=entity.payment_status.value,
            fee=entity.fee,
            profit=entity.profit,
            sale_id=entity.sale_id,
            transaction_id=entity.transaction_id,
            manager_id=entity.manager_id,
            ip=entity.ip,
            city=entity.city,
            country=entity.country,
            risk=entity.risk,
            ip_user_type=entity.ip_user_type,
            ip_postal_code=entity.ip_postal_code,
        )

    async def create(self, order: Order) -> Order:
        """创建订单"""
        try:
            db_order = self._to_model(order)
            self.session.add(db_order)
            await self.session.flush()  # 获取生成的ID
            await self.session.refresh(db_order)
            return self._to_entity(db_order)
        except IntegrityError as e:
            logger.warning("create_order_conflict", order_number=order.number, error=str(e))
            raise PersistenceException("Order number already exists", details={"number": order.number}) from e

    async def get_by_id(self, order_id: int, *, for_update: bool = False) -> Optional[Order]:
        """根据ID获取订单"""
        query = select(OrderModel).where(OrderModel.id == order_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def get_by_number(self, number: str) -> Optional[Order]:
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.number == number)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def update(self, order: Order) -> Order:
        """更新订单可变字段"""
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.id == order.id)
        )
        db_order = result.scalar_one_or_none()

        if not db_order:
            raise OrderNotFoundException(order.id)

        for name in MUTABLE_FIELDS:
            value = getattr(order, name)
            if name in ("status", "payment_status"):
                value = value.value
            if name == "updated_at" and value is None:
                continue
            setattr(db_order, name, value)

        await self.session.flush()
        await self.session.refresh(db_order)
        return self._to_entity(db_order)

    async def add_status_entry(self, entry: OrderStatusEntry) -> OrderStatusEntry:
        db_entry = OrderStatusModel(
            order_id=entry.order_id,
            status=entry.status.value,
            created_at=entry.created_at,
        )
        self.session.add(db_entry)
        await self.session.flush()
        return OrderStatusEntry(
            id=db_entry.id,
            order_id=db_entry.order_id,
            status=OrderStatus(db_entry.status),
            created_at=db_entry.created_at,
        )

    async def list_status_entries(self, order_id: int) -> List[OrderStatusEntry]:
        result = await self.session.execute(
            select(OrderStatusModel)
            .where(OrderStatusModel.order_id == order_id)
            .order_by(OrderStatusModel.created_at.asc(), OrderStatusModel.id.asc())
        )
        return [
            OrderStatusEntry(id=m.id, order_id=m.order_id, status=OrderStatus(m.status), created_at=m.created_at)
            for m in result.scalars().all()
        ]


class SQLAlchemyBlacklistRepository(BlacklistRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def add_order(self, order: Order) -> None:
        self.session.add(
            BlacklistModel(order_id=order.id, user_id=order.buyer_id, email=order.buyer_email, ip=order.ip)
        )
        await self.session.flush()
