from abc import ABC, abstractmethod
from typing import Optional

from .entity import Product


class ProductRepository(ABC):

    @abstractmethod
    async def get_published(self, product_id: int) -> Optional[Product]:
        """只返回已上架商品"""
        pass

    @abstractmethod
    async def get_by_id(self, product_id: int) -> Optional[Product]:
        pass
