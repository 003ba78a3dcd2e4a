from abc import ABC, abstractmethod
from collections.abc import Collection
from typing import Any
from uuid import UUID

from src.service.commerce.domain.entity.order_entity import Order, OrderStatus


class IOrderCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, order: Order) -> Order:
        """Insert the order together with its line items"""
        pass

    @abstractmethod
    async def transition_status(
        self,
        *,
        order_id: UUID,
        expected: Collection[OrderStatus],
        target: OrderStatus,
        changes: dict[str, Any] | None = None,
    ) -> bool:
        """
        Conditional status change: applied only while the stored status is in `expected`

        Args:
            order_id: Order to update
            expected: Statuses the order must currently be in
            target: New status
            changes: Extra columns written in the same statement (paid_at, tracking_number, ...)

        Returns:
            True if exactly this call performed the transition
        """
        pass
