from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.commerce.domain.entity.sellable_unit_entity import (
    SeatingMode,
    SellableUnit,
    UnitKind,
)
from src.service.commerce.driven_adapter.model.event_model import EventModel
from src.service.commerce.driven_adapter.model.product_model import ProductModel
from src.service.commerce.driven_adapter.model.ticket_type_model import TicketTypeModel
from src.service.commerce.driven_adapter.repo.repo_utils import as_utc


class InventoryLedgerImpl(IInventoryLedger):
    """
    Stock lives in product.stock and ticket_type.capacity.

    `UPDATE ... WHERE stock >= :q` takes the row lock in PostgreSQL (the whole
    database write lock in SQLite) and re-checks the predicate after acquiring
    it, so two transactions can never both take the last unit.
    """

    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def get_unit(self, *, kind: UnitKind, unit_id: int) -> Optional[SellableUnit]:
        match kind:
            case UnitKind.MERCHANDISE:
                product = await self.session.get(ProductModel, unit_id, populate_existing=True)
                if product is None:
                    return None
                return SellableUnit(
                    kind=UnitKind.MERCHANDISE,
                    id=product.id,
                    name=product.name,
                    price=product.price,
                    remaining=product.stock,
                    artist_id=product.artist_id,
                    limit_per_user=product.limit_per_user,
                )
            case UnitKind.TICKET:
                result = await self.session.execute(
                    select(TicketTypeModel, EventModel)
                    .join(EventModel, EventModel.id == TicketTypeModel.event_id)
                    .where(TicketTypeModel.id == unit_id)
                    .execution_options(populate_existing=True)
                )
                row = result.one_or_none()
                if row is None:
                    return None
                ticket_type, event = row
                return SellableUnit(
                    kind=UnitKind.TICKET,
                    id=ticket_type.id,
                    name=ticket_type.name,
                    price=ticket_type.price,
                    remaining=ticket_type.capacity,
                    artist_id=event.artist_id,
                    event_id=event.id,
                    event_name=event.name,
                    event_date=as_utc(event.event_date),
                    seating_mode=SeatingMode(ticket_type.seating_mode),
                )

    @Logger.io
    async def try_reserve(self, *, kind: UnitKind, unit_id: int, quantity: int) -> bool:
        if quantity < 1:
            raise ValueError('quantity must be positive')
        match kind:
            case UnitKind.MERCHANDISE:
                stmt = (
                    update(ProductModel)
                    .where(ProductModel.id == unit_id, ProductModel.stock >= quantity)
                    .values(stock=ProductModel.stock - quantity)
                )
            case UnitKind.TICKET:
                stmt = (
                    update(TicketTypeModel)
                    .where(TicketTypeModel.id == unit_id, TicketTypeModel.capacity >= quantity)
                    .values(capacity=TicketTypeModel.capacity - quantity)
                )
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        return result.rowcount == 1  # type: ignore[attr-defined]

    @Logger.io
    async def release(self, *, kind: UnitKind, unit_id: int, quantity: int) -> None:
        match kind:
            case UnitKind.MERCHANDISE:
                stmt = (
                    update(ProductModel)
                    .where(ProductModel.id == unit_id)
                    .values(stock=ProductModel.stock + quantity)
                )
            case UnitKind.TICKET:
                stmt = (
                    update(TicketTypeModel)
                    .where(TicketTypeModel.id == unit_id)
                    .values(capacity=TicketTypeModel.capacity + quantity)
                )
        result = await self.session.execute(stmt.execution_options(synchronize_session=False))
        if result.rowcount == 0:  # type: ignore[attr-defined]
            Logger.base.warning(
                f'⚠️ [LEDGER] {kind} {unit_id} is gone, {quantity} unit(s) not restocked'
            )

    @Logger.io
    async def advance_issued_count(self, *, ticket_type_id: int, quantity: int) -> int:
        await self.session.execute(
            update(TicketTypeModel)
            .where(TicketTypeModel.id == ticket_type_id)
            .values(issued_count=TicketTypeModel.issued_count + quantity)
            .execution_options(synchronize_session=False)
        )
        # The UPDATE above holds the row lock until commit, so this read is ours alone
        issued_after = await self.session.scalar(
            select(TicketTypeModel.issued_count).where(TicketTypeModel.id == ticket_type_id)
        )
        if issued_after is None:
            raise LookupError(f'ticket type {ticket_type_id} not found')
        return issued_after - quantity
