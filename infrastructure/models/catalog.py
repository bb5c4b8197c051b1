"""
商品与折扣码数据库模型
"""
from sqlalchemy import (
    Boolean, Column, Integer, String, Numeric, DateTime, ForeignKey, UniqueConstraint
)
from datetime import datetime, timezone

from .base import Base


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    url = Column(String(500), nullable=True)
    cost_price = Column(Numeric(precision=15, scale=4), nullable=False, default=0, comment="单位成本（美元）")
    published = Column(Boolean, nullable=False, default=True, index=True)


class DiscountCodeModel(Base):
    """折扣码；deleted_at 非空表示软删除"""
    __tablename__ = "discount_codes"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(64), unique=True, index=True, nullable=False, comment="区分大小写")
    type = Column(String(20), nullable=False, comment="gold=固定数量，其他=百分比")
    amount = Column(Numeric(precision=15, scale=2), nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class DiscountToOrderModel(Base):
    __tablename__ = "discount_to_order"

    id = Column(Integer, primary_key=True, index=True)
    discount_id = Column(Integer, ForeignKey("discount_codes.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        UniqueConstraint("discount_id", "order_id", name="uq_discount_to_order"),
    )
