from typing import List, Optional

from pydantic import BaseModel, Field

from src.service.commerce.app.dto.checkout_dto import CheckoutResult
from src.service.commerce.domain.entity.order_entity import FulfillmentMethod, PaymentMethod
from src.service.commerce.domain.entity.sellable_unit_entity import UnitKind
from src.service.commerce.driving_adapter.http_controller.schema.order_schema import (
    IssuedTicketResponse,
    OrderResponse,
)


class CheckoutRequest(BaseModel):
    """Amounts are never accepted from the client; unknown fields are dropped"""

    unit_kind: UnitKind
    unit_id: int = Field(gt=0)
    quantity: int = Field(ge=1)
    payment_method: PaymentMethod
    fulfillment_method: FulfillmentMethod

    class Config:
        json_schema_extra = {
            'examples': [
                {
                    'unit_kind': 'merchandise',
                    'unit_id': 5,
                    'quantity': 2,
                    'payment_method': 'online',
                    'fulfillment_method': 'mail',
                },
                {
                    'unit_kind': 'ticket',
                    'unit_id': 3,
                    'quantity': 1,
                    'payment_method': 'cash',
                    'fulfillment_method': 'venue',
                },
            ]
        }


class CheckoutResponse(BaseModel):
    order: OrderResponse
    client_secret: Optional[str] = None
    tickets: List[IssuedTicketResponse] = []

    @classmethod
    def from_result(cls, result: CheckoutResult) -> 'CheckoutResponse':
        return cls(
            order=OrderResponse.from_entity(result.order),
            client_secret=result.client_secret,
            tickets=[IssuedTicketResponse.from_entity(ticket) for ticket in result.tickets],
        )
