from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.service.commerce.domain.entity.order_entity import Order
from src.service.commerce.domain.entity.sellable_unit_entity import UnitKind


@Logger.io
async def release_order_stock(*, uow: AbstractUnitOfWork, order: Order) -> int:
    """
    Give the order's quantities back to the ledger inside the caller's transaction.
    Call only after this transaction won the conditional move to `canceled`,
    so each order is restocked exactly once.

    Returns:
        Number of units released
    """
    released = 0
    for item in order.items:
        if item.ticket_type_id is not None:
            kind, unit_id = UnitKind.TICKET, item.ticket_type_id
        elif item.product_id is not None:
            kind, unit_id = UnitKind.MERCHANDISE, item.product_id
        else:
            Logger.base.warning(f'⚠️ [LEDGER] Order {order.id} item has no catalog entry')
            continue
        await uow.inventory_ledger.release(kind=kind, unit_id=unit_id, quantity=item.quantity)
        released += item.quantity
    return released
