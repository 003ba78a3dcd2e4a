"""
Ticket Issuance & Seat Assignment

Mints one IssuedTicket per purchased unit inside the caller's transaction.
Seat labels continue the ticket type's issued counter, which the ledger
advances atomically, so concurrent issuances never share a label.
"""

from datetime import datetime, timezone
from typing import List, Optional
import uuid

import uuid_utils

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.commerce.domain.entity.issued_ticket_entity import IssuedTicket
from src.service.commerce.domain.entity.order_entity import Order
from src.service.commerce.domain.entity.sellable_unit_entity import UnitKind
from src.service.commerce.domain.value_object.redemption import new_redemption_token
from src.service.commerce.domain.value_object.seat_label import build_seat_labels


class TicketIssuanceService:
    def __init__(self, *, open_seating_label: str = settings.OPEN_SEATING_LABEL) -> None:
        self.open_seating_label = open_seating_label

    @Logger.io
    async def issue_for_order(
        self,
        *,
        uow: AbstractUnitOfWork,
        order: Order,
        payment_reference: Optional[str] = None,
    ) -> List[IssuedTicket]:
        """
        Issue the tickets of a ticket order. Must run inside an open unit of work;
        the caller commits.

        Raises:
            NotFoundError: the ticket type of the line item no longer exists
        """
        tickets: List[IssuedTicket] = []
        now = datetime.now(timezone.utc)

        for item in order.items:
            if item.ticket_type_id is None:
                continue

            unit = await uow.inventory_ledger.get_unit(
                kind=UnitKind.TICKET, unit_id=item.ticket_type_id
            )
            if unit is None or unit.event_id is None or unit.seating_mode is None:
                raise NotFoundError(f'Ticket type {item.ticket_type_id} not found')

            issued_before = await uow.inventory_ledger.advance_issued_count(
                ticket_type_id=item.ticket_type_id, quantity=item.quantity
            )
            labels = build_seat_labels(
                seating_mode=unit.seating_mode,
                ticket_type_name=unit.name,
                open_seating_label=self.open_seating_label,
                issued_before=issued_before,
                quantity=item.quantity,
            )

            for label in labels:
                tickets.append(
                    IssuedTicket(
                        id=uuid.UUID(str(uuid_utils.uuid7())),
                        order_id=order.id,
                        owner_id=order.buyer_id,
                        ticket_type_id=item.ticket_type_id,
                        event_id=unit.event_id,
                        seat_label=label,
                        redemption_token=new_redemption_token(),
                        ordinal=len(tickets) + 1,
                        payment_reference=payment_reference,
                        created_at=now,
                    )
                )

        if tickets:
            await uow.issued_ticket_repo.create_many(tickets=tickets)
            Logger.base.info(f'🎫 [ISSUANCE] {len(tickets)} ticket(s) for order {order.id}')
        return tickets
