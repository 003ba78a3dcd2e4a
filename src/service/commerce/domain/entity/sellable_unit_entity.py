from datetime import date, datetime, timezone
from enum import StrEnum
from typing import Optional

import attrs


class UnitKind(StrEnum):
    MERCHANDISE = 'merchandise'
    TICKET = 'ticket'


class SeatingMode(StrEnum):
    ASSIGNED = 'assigned'
    OPEN = 'open'


@attrs.define
class SellableUnit:
    """
    A row of the inventory ledger: merchandise stock or ticket-type capacity.

    `remaining` is a read snapshot only; the ledger's conditional decrement is
    the authority on whether a purchase fits.
    """

    kind: UnitKind
    id: int
    name: str
    price: int
    remaining: int
    artist_id: int
    limit_per_user: Optional[int] = None
    event_id: Optional[int] = None
    event_name: Optional[str] = None
    event_date: Optional[datetime] = None
    seating_mode: Optional[SeatingMode] = None

    @property
    def display_name(self) -> str:
        """Line item name snapshot; ticket types are named within their event"""
        if self.event_name:
            return f'{self.event_name} {self.name}'
        return self.name

    @property
    def is_ticket(self) -> bool:
        return self.kind == UnitKind.TICKET

    def has_stock_for(self, quantity: int) -> bool:
        return self.remaining >= quantity

    def sales_closed(self, *, now: Optional[datetime] = None) -> bool:
        """Ticket sales stay open through the whole day of the event"""
        if self.event_date is None:
            return False
        today: date = (now or datetime.now(timezone.utc)).date()
        return self.event_date.date() < today
