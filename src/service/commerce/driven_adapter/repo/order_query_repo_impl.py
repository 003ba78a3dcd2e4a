from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_order_query_repo import IOrderQueryRepo
from src.service.commerce.domain.entity.order_entity import Order, OrderStatus, PaymentMethod
from src.service.commerce.driven_adapter.model.order_item_model import OrderItemModel
from src.service.commerce.driven_adapter.model.order_model import OrderModel
from src.service.commerce.driven_adapter.repo.order_mapper import order_to_entity


class OrderQueryRepoImpl(IOrderQueryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    async def _with_items(self, models: List[OrderModel]) -> List[Order]:
        if not models:
            return []
        result = await self.session.execute(
            select(OrderItemModel)
            .where(OrderItemModel.order_id.in_([model.id for model in models]))
            .order_by(OrderItemModel.id)
        )
        items_by_order: dict[UUID, List[OrderItemModel]] = {}
        for item in result.scalars():
            items_by_order.setdefault(item.order_id, []).append(item)
        return [order_to_entity(model, items_by_order.get(model.id, [])) for model in models]

    async def _fetch(self, stmt) -> List[Order]:
        result = await self.session.execute(stmt.execution_options(populate_existing=True))
        return await self._with_items(list(result.scalars()))

    @Logger.io
    async def get_by_id(self, *, order_id: UUID) -> Optional[Order]:
        orders = await self._fetch(select(OrderModel).where(OrderModel.id == order_id))
        return orders[0] if orders else None

    @Logger.io
    async def get_by_redemption_token(self, *, token: str) -> Optional[Order]:
        orders = await self._fetch(select(OrderModel).where(OrderModel.redemption_token == token))
        return orders[0] if orders else None

    @Logger.io
    async def list_by_buyer(self, *, buyer_id: int) -> List[Order]:
        return await self._fetch(
            select(OrderModel)
            .where(OrderModel.buyer_id == buyer_id)
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
        )

    @Logger.io
    async def count_purchased_quantity(self, *, buyer_id: int, product_id: int) -> int:
        total = await self.session.scalar(
            select(func.coalesce(func.sum(OrderItemModel.quantity), 0))
            .join(OrderModel, OrderModel.id == OrderItemModel.order_id)
            .where(
                OrderModel.buyer_id == buyer_id,
                OrderItemModel.product_id == product_id,
                OrderModel.status != OrderStatus.CANCELED.value,
            )
        )
        return int(total or 0)

    @Logger.io
    async def list_expired_pending(self, *, created_before: datetime, limit: int) -> List[Order]:
        return await self._fetch(
            select(OrderModel)
            .where(
                OrderModel.status == OrderStatus.PENDING.value,
                OrderModel.payment_method == PaymentMethod.ONLINE.value,
                OrderModel.created_at < created_before,
            )
            .order_by(OrderModel.created_at)
            .limit(limit)
        )
