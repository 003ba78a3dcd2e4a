from collections.abc import Collection
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_order_command_repo import IOrderCommandRepo
from src.service.commerce.domain.entity.order_entity import Order, OrderStatus
from src.service.commerce.driven_adapter.model.order_item_model import OrderItemModel
from src.service.commerce.driven_adapter.model.order_model import OrderModel
from src.service.commerce.driven_adapter.repo.order_mapper import order_to_model

_WRITABLE_COLUMNS = frozenset(
    {
        'payment_reference',
        'tracking_number',
        'redeemed_by',
        'paid_at',
        'shipped_at',
        'redeemed_at',
        'canceled_at',
    }
)


class OrderCommandRepoImpl(IOrderCommandRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def create(self, *, order: Order) -> Order:
        self.session.add(order_to_model(order))
        # Flush the parent first: order_item has no ORM relationship to order the inserts
        await self.session.flush()
        self.session.add_all(
            [
                OrderItemModel(
                    order_id=order.id,
                    product_id=item.product_id,
                    ticket_type_id=item.ticket_type_id,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    product_name=item.product_name,
                )
                for item in order.items
            ]
        )
        await self.session.flush()
        return order

    @Logger.io
    async def transition_status(
        self,
        *,
        order_id: UUID,
        expected: Collection[OrderStatus],
        target: OrderStatus,
        changes: dict[str, Any] | None = None,
    ) -> bool:
        changes = changes or {}
        unknown = set(changes) - _WRITABLE_COLUMNS
        if unknown:
            raise ValueError(f'columns not writable through a status transition: {unknown}')

        result = await self.session.execute(
            update(OrderModel)
            .where(
                OrderModel.id == order_id,
                OrderModel.status.in_([status.value for status in expected]),
            )
            .values(status=target.value, updated_at=datetime.now(timezone.utc), **changes)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]
