from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.service.commerce.domain.entity.order_entity import Order


class IOrderQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, order_id: UUID) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_by_redemption_token(self, *, token: str) -> Optional[Order]:
        pass

    @abstractmethod
    async def list_by_buyer(self, *, buyer_id: int) -> List[Order]:
        """Buyer's orders, newest first"""
        pass

    @abstractmethod
    async def count_purchased_quantity(self, *, buyer_id: int, product_id: int) -> int:
        """Units of a product the buyer holds in orders that were not canceled"""
        pass

    @abstractmethod
    async def list_expired_pending(self, *, created_before: datetime, limit: int) -> List[Order]:
        """Online-payment orders still pending that were created before the cutoff"""
        pass
