from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import attrs


@attrs.define
class IssuedTicket:
    id: UUID
    order_id: UUID
    owner_id: int
    ticket_type_id: int
    event_id: int
    seat_label: str
    redemption_token: str
    ordinal: int
    payment_reference: Optional[str] = None
    is_used: bool = False
    used_at: Optional[datetime] = None
    used_by: Optional[int] = None
    created_at: Optional[datetime] = None

    def mark_used(self, *, actor_id: int, at: Optional[datetime] = None) -> 'IssuedTicket':
        # Monotonic: callers must check is_used through the store's conditional update
        return attrs.evolve(
            self, is_used=True, used_at=at or datetime.now(timezone.utc), used_by=actor_id
        )
