from typing import List, Optional

import attrs

from src.service.commerce.domain.entity.issued_ticket_entity import IssuedTicket
from src.service.commerce.domain.entity.order_entity import Order


@attrs.frozen
class CheckoutResult:
    order: Order
    client_secret: Optional[str] = None
    tickets: List[IssuedTicket] = attrs.field(factory=list)
