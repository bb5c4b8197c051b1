"""
商品与折扣码仓储实现
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from domain.discount.entity import DiscountCode, DiscountToOrder
from domain.discount.repository import DiscountRepository
from domain.product.entity import Product
from domain.product.repository import ProductRepository
from infrastructure.models.catalog import DiscountCodeModel, DiscountToOrderModel, ProductModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyProductRepository(ProductRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(model: ProductModel) -> Product:
        return Product(
            id=model.id,
            title=model.title,
            url=model.url,
            cost_price=model.cost_price,
            published=model.published,
        )

    async def get_published(self, product_id: int) -> Optional[Product]:
        result = await self.session.execute(
            select(ProductModel).where(ProductModel.id == product_id, ProductModel.published.is_(True))
        )
        db_product = result.scalar_one_or_none()
        return self._to_entity(db_product) if db_product else None

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        result = await self.session.execute(select(ProductModel).where(ProductModel.id == product_id))
        db_product = result.scalar_one_or_none()
        return self._to_entity(db_product) if db_product else None


class SQLAlchemyDiscountRepository(DiscountRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_code(self, code: str, *, include_deleted: bool = True) -> Optional[DiscountCode]:
        query = select(DiscountCodeModel).where(DiscountCodeModel.code == code)
        if not include_deleted:
            query = query.where(DiscountCodeModel.deleted_at.is_(None))
        result = await self.session.execute(query)
        m = result.scalar_one_or_none()
        if m is None:
            return None
        return DiscountCode(id=m.id, code=m.code, type=m.type, amount=m.amount, deleted_at=m.deleted_at)

    async def get_link(self, discount_id: int, order_id: int) -> Optional[DiscountToOrder]:
        result = await self.session.execute(
            select(DiscountToOrderModel).where(
                DiscountToOrderModel.discount_id == discount_id,
                DiscountToOrderModel.order_id == order_id,
            )
        )
        m = result.scalar_one_or_none()
        if m is None:
            return None
        return DiscountToOrder(id=m.id, discount_id=m.discount_id, order_id=m.order_id, created_at=m.created_at)

    async def link_to_order(self, discount_id: int, order_id: int) -> DiscountToOrder:
        existing = await self.get_link(discount_id, order_id)
        if existing:
            return existing
        link = DiscountToOrderModel(discount_id=discount_id, order_id=order_id)
        try:
            # savepoint: a concurrent insert must not abort the outer transaction
            async with self.session.begin_nested():
                self.session.add(link)
                await self.session.flush()
        except IntegrityError:
            logger.info("discount_link_exists", discount_id=discount_id, order_id=order_id)
            existing = await self.get_link(discount_id, order_id)
            if existing is None:
                raise
            return existing
        return DiscountToOrder(id=link.id, discount_id=link.discount_id, order_id=link.order_id, created_at=link.created_at)
