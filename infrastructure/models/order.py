"""
订单数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Index, ForeignKey
)
from sqlalchemy.orm import relationship
from datetime import datetime, timezone

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderModel(Base):
    """
    订单数据库模型

    业务规则都在 domain.order.entity.Order 中
    """
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(String(64), unique=True, index=True, nullable=False, comment="订单号")

    # 商品快照
    product_id = Column(Integer, nullable=False, index=True, comment="商品ID")
    product = Column(String(255), nullable=False, comment="商品名称")
    product_url = Column(String(500), nullable=True, comment="商品页面")
    price = Column(Numeric(precision=15, scale=4), nullable=False, comment="单价")
    quantity = Column(Numeric(precision=15, scale=2), nullable=False, comment="最终数量（含奖励）")
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="订单金额")
    currency = Column(String(3), nullable=False, default="USD", comment="货币代码 ISO-4217")
    usd_amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="美元金额（创建时计算）")

    # 买家
    buyer_id = Column(Integer, nullable=True, index=True, comment="买家用户ID（游客为空）")
    buyer_email = Column(String(255), nullable=False, index=True, comment="买家邮箱")
    buyer_name = Column(String(255), nullable=False, default="", comment="买家名称")
    nick = Column(String(255), nullable=True, comment="游戏内昵称")

    # 支付
    payment = Column(String(50), nullable=False, comment="买家选择的支付方式")
    payment_provider = Column(String(50), nullable=False, index=True, comment="实际调用的网关")
    status = Column(String(20), nullable=False, default="Created", index=True, comment="业务状态")
    payment_status = Column(String(30), nullable=False, default="created", comment="网关状态")
    fee = Column(Numeric(precision=15, scale=2), nullable=False, default=0, comment="网关手续费")
    profit = Column(Numeric(precision=15, scale=2), nullable=False, default=0, comment="利润")
    sale_id = Column(String(100), nullable=True, index=True, comment="G2A 交易号")
    transaction_id = Column(String(100), nullable=True, index=True, comment="网关交易号")
    manager_id = Column(Integer, nullable=True, comment="执行退款的管理员")

    # 风控与地理信息
    ip = Column(String(64), nullable=True)
    city = Column(String(100), nullable=False, default="")
    country = Column(String(100), nullable=False, default="")
    risk = Column(String(50), nullable=False, default="")
    ip_user_type = Column(String(50), nullable=False, default="")
    ip_postal_code = Column(String(20), nullable=False, default="")

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False, comment="更新时间")

    statuses = relationship("OrderStatusModel", back_populates="order", lazy="select")

    __table_args__ = (
        Index("ix_orders_provider_status", "payment_provider", "status"),
    )

    def __repr__(self):
        return (
            f"<OrderModel(id={self.id}, number='{self.number}', "
            f"provider='{self.payment_provider}', amount={self.amount}, status='{self.status}')>"
        )


class OrderStatusModel(Base):
    """订单状态历史"""
    __tablename__ = "order_statuses"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="关联订单ID"
    )
    status = Column(String(20), nullable=False, comment="业务状态")
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    order = relationship("OrderModel", back_populates="statuses")


class BlacklistModel(Base):
    """被封禁买家下的订单，等待人工审核"""
    __tablename__ = "blacklist"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, nullable=True, index=True)
    email = Column(String(255), nullable=False)
    ip = Column(String(64), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
