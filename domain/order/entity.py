"""
订单领域实体 - 结账时生成的订单快照
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from domain.common.exceptions import DomainValidationException


class OrderStatus(str, Enum):
    """业务生命周期状态"""
    CREATED = "Created"
    PENDING = "Pending"
    DELIVERED = "Delivered"
    REFUNDED = "Refunded"
    CANCELED = "Canceled"


class GatewayStatus(str, Enum):
    """支付网关侧状态词汇（与业务状态相互独立）"""
    CREATED = "created"
    NEW = "new"
    PENDING = "pending"
    COMPLETE = "complete"
    REFUNDED = "refunded"
    REJECTED = "rejected"
    DISPUTE = "dispute"
    CHARGEBACK = "chargeback"
    REVERSED = "reversed"
    CANCELED_REVERSAL = "canceled_reversal"
    COMPLAINT = "complaint"
    FAILED = "failed"
    UNKNOWN = "unknown"
    BLOCKED = "blocked"


# 结账时冻结的商业快照字段，创建后不可修改
SNAPSHOT_FIELDS = frozenset({
    "number",
    "product_id",
    "product",
    "price",
    "quantity",
    "amount",
    "currency",
    "usd_amount",
    "payment",
    "payment_provider",
})


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Order:
    """
    订单聚合根

    业务规则：
    1. amount/price/quantity 不能为负
    2. usd_amount 只在创建时计算一次
    3. payment_provider 记录实际调用的网关（退款按它路由）
    4. 快照字段创建后只读；状态、退款与结算字段可变
    """

    id: Optional[int]
    number: str
    product_id: int
    product: str
    price: Decimal
    quantity: Decimal
    amount: Decimal
    currency: str
    usd_amount: Decimal
    buyer_id: Optional[int]
    buyer_email: str
    buyer_name: str
    payment: str
    payment_provider: str
    status: OrderStatus = OrderStatus.CREATED
    payment_status: GatewayStatus = GatewayStatus.CREATED
    fee: Decimal = field(default_factory=lambda: Decimal("0"))
    profit: Decimal = field(default_factory=lambda: Decimal("0"))

    product_url: Optional[str] = None
    nick: Optional[str] = None
    ip: Optional[str] = None
    city: str = ""
    country: str = ""
    risk: str = ""
    ip_user_type: str = ""
    ip_postal_code: str = ""

    sale_id: Optional[str] = None
    transaction_id: Optional[str] = None
    manager_id: Optional[int] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.number:
            raise DomainValidationException("Order number is required", field="number")
        for name in ("price", "quantity", "amount", "usd_amount"):
            if getattr(self, name) < 0:
                raise DomainValidationException(
                    f"{name} must not be negative: {getattr(self, name)}",
                    field=name,
                )
        if not self.currency or len(self.currency) != 3 or not self.currency.isalpha():
            raise DomainValidationException(f"Invalid currency code: {self.currency}", field="currency")
        object.__setattr__(self, "_sealed", True)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in SNAPSHOT_FIELDS and getattr(self, "_sealed", False):
            raise DomainValidationException(
                f"Order field '{name}' is part of the checkout snapshot and cannot change",
                field=name,
            )
        super().__setattr__(name, value)

    @property
    def is_refunded(self) -> bool:
        return self.status == OrderStatus.REFUNDED

    def assign_manager(self, manager_id: Optional[int]) -> None:
        self.manager_id = manager_id
        self.updated_at = _utcnow()

    def mark_refunded(self) -> None:
        """标记已退款；同一订单只能退款一次"""
        if self.is_refunded:
            raise DomainValidationException("Order already refunded", field="status")
        self.status = OrderStatus.REFUNDED
        self.payment_status = GatewayStatus.REFUNDED
        self.updated_at = _utcnow()

    def record_settlement(
        self,
        *,
        fee: Decimal,
        profit: Decimal,
        payment_status: GatewayStatus = GatewayStatus.COMPLETE,
        sale_id: Optional[str] = None,
        transaction_id: Optional[str] = None,
    ) -> None:
        """网关确认收款后记录网关流水号、实际手续费与利润"""
        if fee < 0:
            raise DomainValidationException(f"fee must not be negative: {fee}", field="fee")
        if sale_id:
            self.sale_id = sale_id
        if transaction_id:
            self.transaction_id = transaction_id
        self.payment_status = payment_status
        self.fee = fee
        self.profit = profit
        self.updated_at = _utcnow()


@dataclass
class OrderStatusEntry:
    """订单状态历史"""
    id: Optional[int]
    order_id: int
    status: OrderStatus
    created_at: datetime = field(default_factory=_utcnow)
