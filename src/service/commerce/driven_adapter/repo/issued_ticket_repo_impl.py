from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_issued_ticket_repo import IIssuedTicketRepo
from src.service.commerce.domain.entity.issued_ticket_entity import IssuedTicket
from src.service.commerce.driven_adapter.model.issued_ticket_model import IssuedTicketModel
from src.service.commerce.driven_adapter.repo.repo_utils import as_utc


class IssuedTicketRepoImpl(IIssuedTicketRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @staticmethod
    def _row_to_entity(model: IssuedTicketModel) -> IssuedTicket:
        return IssuedTicket(
            id=model.id,
            order_id=model.order_id,
            owner_id=model.owner_id,
            ticket_type_id=model.ticket_type_id,
            event_id=model.event_id,
            seat_label=model.seat_label,
            redemption_token=model.redemption_token,
            ordinal=model.ordinal,
            payment_reference=model.payment_reference,
            is_used=model.is_used,
            used_at=as_utc(model.used_at),
            used_by=model.used_by,
            created_at=as_utc(model.created_at),
        )

    @Logger.io
    async def create_many(self, *, tickets: List[IssuedTicket]) -> List[IssuedTicket]:
        self.session.add_all(
            [
                IssuedTicketModel(
                    id=ticket.id,
                    order_id=ticket.order_id,
                    owner_id=ticket.owner_id,
                    ticket_type_id=ticket.ticket_type_id,
                    event_id=ticket.event_id,
                    seat_label=ticket.seat_label,
                    redemption_token=ticket.redemption_token,
                    ordinal=ticket.ordinal,
                    payment_reference=ticket.payment_reference,
                    is_used=False,
                    created_at=ticket.created_at,
                )
                for ticket in tickets
            ]
        )
        await self.session.flush()
        return tickets

    @Logger.io
    async def get_by_redemption_token(self, *, token: str) -> Optional[IssuedTicket]:
        result = await self.session.execute(
            select(IssuedTicketModel)
            .where(IssuedTicketModel.redemption_token == token)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return self._row_to_entity(model) if model else None

    @Logger.io
    async def list_by_order(self, *, order_id: UUID) -> List[IssuedTicket]:
        result = await self.session.execute(
            select(IssuedTicketModel)
            .where(IssuedTicketModel.order_id == order_id)
            .order_by(IssuedTicketModel.ordinal)
        )
        return [self._row_to_entity(model) for model in result.scalars()]

    @Logger.io
    async def list_by_owner(self, *, owner_id: int) -> List[IssuedTicket]:
        result = await self.session.execute(
            select(IssuedTicketModel)
            .where(IssuedTicketModel.owner_id == owner_id)
            .order_by(IssuedTicketModel.created_at.desc(), IssuedTicketModel.ordinal)
        )
        return [self._row_to_entity(model) for model in result.scalars()]

    @Logger.io
    async def mark_used_if_unused(self, *, ticket_id: UUID, actor_id: int, at: datetime) -> bool:
        result = await self.session.execute(
            update(IssuedTicketModel)
            .where(IssuedTicketModel.id == ticket_id, IssuedTicketModel.is_used.is_(False))
            .values(is_used=True, used_at=at, used_by=actor_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1  # type: ignore[attr-defined]

    @Logger.io
    async def count_unused(self, *, order_id: UUID) -> int:
        count = await self.session.scalar(
            select(func.count())
            .select_from(IssuedTicketModel)
            .where(IssuedTicketModel.order_id == order_id, IssuedTicketModel.is_used.is_(False))
        )
        return int(count or 0)
