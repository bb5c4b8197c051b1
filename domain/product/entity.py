"""商品目录（只读协作者）"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass
class Product:
    id: int
    title: str
    url: Optional[str] = None
    cost_price: Decimal = Decimal("0")
    published: bool = True
