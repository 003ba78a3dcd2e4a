from typing import List

import attrs

from src.service.commerce.domain.entity.issued_ticket_entity import IssuedTicket
from src.service.commerce.domain.entity.order_entity import Order


@attrs.frozen
class OrderDetail:
    order: Order
    tickets: List[IssuedTicket] = attrs.field(factory=list)
