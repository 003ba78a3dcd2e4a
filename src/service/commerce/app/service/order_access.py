from typing import Optional

from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError
from src.service.commerce.domain.entity.order_entity import Order
from src.service.commerce.domain.entity.sellable_unit_entity import UnitKind
from src.service.commerce.domain.entity.user_entity import UserEntity


async def order_artist_id(*, uow: AbstractUnitOfWork, order: Order) -> Optional[int]:
    """Selling artist of the order's catalog entry; None once the entry was deleted"""
    item = order.items[0] if order.items else None
    if item is None:
        return None
    if item.ticket_type_id is not None:
        unit = await uow.inventory_ledger.get_unit(
            kind=UnitKind.TICKET, unit_id=item.ticket_type_id
        )
    elif item.product_id is not None:
        unit = await uow.inventory_ledger.get_unit(
            kind=UnitKind.MERCHANDISE, unit_id=item.product_id
        )
    else:
        return None
    return unit.artist_id if unit else None


async def ensure_can_view_order(
    *, uow: AbstractUnitOfWork, actor: UserEntity, order: Order
) -> None:
    # Unauthorized viewers get the same answer as a missing order
    if order.buyer_id == actor.id or actor.is_admin:
        return
    if actor.owns_catalog_entry(await order_artist_id(uow=uow, order=order)):
        return
    raise NotFoundError('Order not found')
