from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel

from src.service.commerce.domain.entity.issued_ticket_entity import IssuedTicket
from src.service.commerce.domain.entity.order_entity import Order, OrderItem, OrderStatus


class OrderItemResponse(BaseModel):
    product_id: Optional[int] = None
    ticket_type_id: Optional[int] = None
    product_name: str
    quantity: int
    unit_price: int
    subtotal: int

    @classmethod
    def from_entity(cls, item: OrderItem) -> 'OrderItemResponse':
        return cls(
            product_id=item.product_id,
            ticket_type_id=item.ticket_type_id,
            product_name=item.product_name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            subtotal=item.subtotal,
        )


class IssuedTicketResponse(BaseModel):
    id: UUID  # UUID7
    order_id: UUID
    event_id: int
    ticket_type_id: int
    seat_label: str
    redemption_token: str
    is_used: bool
    used_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, ticket: IssuedTicket) -> 'IssuedTicketResponse':
        return cls(
            id=ticket.id,
            order_id=ticket.order_id,
            event_id=ticket.event_id,
            ticket_type_id=ticket.ticket_type_id,
            seat_label=ticket.seat_label,
            redemption_token=ticket.redemption_token,
            is_used=ticket.is_used,
            used_at=ticket.used_at,
        )


class OrderResponse(BaseModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'id': '01936d8f-5e73-7c4e-a9c5-123456789abc',  # UUID7
                'buyer_id': 2,
                'status': 'pending',
                'total_price': 3000,
                'platform_fee': 300,
                'payout_amount': 2700,
                'payment_method': 'online',
                'fulfillment_method': 'venue',
                'redemption_token': '8c0c3f8e-6f2b-4a57-9d1e-0d4f3c1e2a7b',
                'items': [
                    {
                        'product_id': 5,
                        'product_name': 'Tour T-shirt',
                        'quantity': 2,
                        'unit_price': 1500,
                        'subtotal': 3000,
                    }
                ],
                'created_at': '2025-01-10T10:30:00Z',
            }
        },
    }

    id: UUID
    buyer_id: int
    status: str
    total_price: int
    platform_fee: int
    payout_amount: int
    payment_method: str
    fulfillment_method: str
    items: List[OrderItemResponse]
    shipping_address: Optional[dict] = None
    redemption_token: Optional[str] = None
    tracking_number: Optional[str] = None
    created_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    redeemed_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order: Order) -> 'OrderResponse':
        return cls(
            id=order.id,
            buyer_id=order.buyer_id,
            status=order.status.value,
            total_price=order.total_price,
            platform_fee=order.platform_fee,
            payout_amount=order.payout_amount,
            payment_method=order.payment_method.value,
            fulfillment_method=order.fulfillment_method.value,
            items=[OrderItemResponse.from_entity(item) for item in order.items],
            shipping_address=order.shipping_address.to_dict() if order.shipping_address else None,
            redemption_token=order.redemption_token,
            tracking_number=order.tracking_number,
            created_at=order.created_at,
            paid_at=order.paid_at,
            shipped_at=order.shipped_at,
            redeemed_at=order.redeemed_at,
            canceled_at=order.canceled_at,
        )


class OrderDetailResponse(OrderResponse):
    tickets: List[IssuedTicketResponse] = []


class OrderTransitionRequest(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None

    class Config:
        json_schema_extra = {'example': {'status': 'shipped', 'tracking_number': '1234-5678-9012'}}
