from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional
from uuid import UUID

import attrs

from src.platform.exception.exceptions import DomainError
from src.platform.logging.loguru_io import Logger
from src.service.commerce.domain.commerce_errors import InvalidStateTransitionError
from src.service.commerce.domain.value_object.commission import Commission
from src.service.commerce.domain.value_object.shipping_address import ShippingAddress


class OrderStatus(StrEnum):
    PENDING = 'pending'
    PAID = 'paid'
    SHIPPED = 'shipped'
    REDEEMED = 'redeemed'
    CANCELED = 'canceled'
    REFUNDED = 'refunded'


class PaymentMethod(StrEnum):
    ONLINE = 'online'
    CASH = 'cash'


class FulfillmentMethod(StrEnum):
    MAIL = 'mail'
    VENUE = 'venue'


# Forward-only lifecycle; cancel/refund are the only administrative exits
ORDER_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.REDEEMED, OrderStatus.CANCELED}
    ),
    OrderStatus.PAID: frozenset(
        {OrderStatus.SHIPPED, OrderStatus.REDEEMED, OrderStatus.CANCELED, OrderStatus.REFUNDED}
    ),
    OrderStatus.SHIPPED: frozenset(
        {OrderStatus.REDEEMED, OrderStatus.CANCELED, OrderStatus.REFUNDED}
    ),
    OrderStatus.REDEEMED: frozenset({OrderStatus.CANCELED, OrderStatus.REFUNDED}),
    OrderStatus.CANCELED: frozenset(),
    OrderStatus.REFUNDED: frozenset(),
}

# Goods are still in stock (not handed over or mailed) only in these states
RESTOCKABLE_STATUSES = frozenset({OrderStatus.PENDING, OrderStatus.PAID})


def awaiting_fulfillment_statuses(payment_method: PaymentMethod) -> frozenset[OrderStatus]:
    """Statuses from which goods may be handed over at the venue"""
    match payment_method:
        case PaymentMethod.CASH:
            return frozenset({OrderStatus.PENDING, OrderStatus.PAID})
        case PaymentMethod.ONLINE:
            return frozenset({OrderStatus.PAID})


@attrs.define
class OrderItem:
    quantity: int
    unit_price: int
    product_name: str
    product_id: Optional[int] = None
    ticket_type_id: Optional[int] = None
    id: Optional[int] = None

    @property
    def subtotal(self) -> int:
        return self.unit_price * self.quantity


@attrs.define
class Order:
    id: UUID
    buyer_id: int
    total_price: int
    platform_fee: int
    payout_amount: int
    payment_method: PaymentMethod
    fulfillment_method: FulfillmentMethod
    items: list[OrderItem] = attrs.field(factory=list)
    status: OrderStatus = OrderStatus.PENDING
    shipping_address: Optional[ShippingAddress] = None
    payment_reference: Optional[str] = None
    redemption_token: Optional[str] = None
    tracking_number: Optional[str] = None
    redeemed_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    shipped_at: Optional[datetime] = None
    redeemed_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        id: UUID,
        buyer_id: int,
        item: OrderItem,
        payment_method: PaymentMethod,
        fulfillment_method: FulfillmentMethod,
        fee_percent: int,
        shipping_address: Optional[ShippingAddress] = None,
        payment_reference: Optional[str] = None,
        redemption_token: Optional[str] = None,
    ) -> 'Order':
        if item.quantity < 1:
            raise DomainError('quantity must be at least 1')
        if item.unit_price < 0:
            raise DomainError('unit price cannot be negative')
        if fulfillment_method == FulfillmentMethod.MAIL and shipping_address is None:
            raise DomainError('mail fulfillment requires a shipping address snapshot')

        commission = Commission.calculate(total=item.subtotal, fee_percent=fee_percent)
        now = datetime.now(timezone.utc)
        return cls(
            id=id,
            buyer_id=buyer_id,
            total_price=commission.total,
            platform_fee=commission.platform_fee,
            payout_amount=commission.payout_amount,
            payment_method=payment_method,
            fulfillment_method=fulfillment_method,
            items=[item],
            status=OrderStatus.PENDING,
            shipping_address=shipping_address,
            payment_reference=payment_reference,
            redemption_token=redemption_token,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_ticket_order(self) -> bool:
        return any(item.ticket_type_id is not None for item in self.items)

    @property
    def is_terminal(self) -> bool:
        return not ORDER_TRANSITIONS[self.status]

    def can_transition_to(self, target: OrderStatus) -> bool:
        return target in ORDER_TRANSITIONS[self.status]

    def ensure_transition(self, target: OrderStatus) -> None:
        """
        Validate a status change against the lifecycle table.

        Raises:
            InvalidStateTransitionError: target is not reachable from the current status
                or the payment/fulfillment combination forbids it
        """
        if not self.can_transition_to(target):
            raise InvalidStateTransitionError(
                f'Order cannot move from {self.status} to {target}'
            )
        match target:
            case OrderStatus.SHIPPED:
                if self.fulfillment_method != FulfillmentMethod.MAIL:
                    raise InvalidStateTransitionError('Only mail orders can be shipped')
                if self.status == OrderStatus.PENDING and self.payment_method != PaymentMethod.CASH:
                    raise InvalidStateTransitionError('Online orders must be paid before shipping')
            case OrderStatus.PAID:
                if self.payment_method != PaymentMethod.ONLINE:
                    raise InvalidStateTransitionError(
                        'Cash orders are settled at the point of redemption'
                    )
            case OrderStatus.REDEEMED:
                if (
                    self.status != OrderStatus.SHIPPED
                    and self.status not in awaiting_fulfillment_statuses(self.payment_method)
                ):
                    raise InvalidStateTransitionError('Payment has not been confirmed')
            case OrderStatus.REFUNDED:
                if self.payment_method == PaymentMethod.CASH and self.paid_at is None:
                    raise InvalidStateTransitionError('Nothing was collected for this order')
            case OrderStatus.CANCELED | OrderStatus.PENDING:
                pass

    def releases_stock_on_cancel(self) -> bool:
        return self.status in RESTOCKABLE_STATUSES

    @Logger.io
    def ship(self, *, tracking_number: str) -> 'Order':
        if not tracking_number.strip():
            raise DomainError('tracking_number is required to ship an order', 422)
        self.ensure_transition(OrderStatus.SHIPPED)
        now = datetime.now(timezone.utc)
        return attrs.evolve(
            self,
            status=OrderStatus.SHIPPED,
            tracking_number=tracking_number.strip(),
            shipped_at=now,
            updated_at=now,
        )

    @Logger.io
    def cancel(self) -> 'Order':
        self.ensure_transition(OrderStatus.CANCELED)
        now = datetime.now(timezone.utc)
        return attrs.evolve(self, status=OrderStatus.CANCELED, canceled_at=now, updated_at=now)

    @Logger.io
    def refund(self) -> 'Order':
        self.ensure_transition(OrderStatus.REFUNDED)
        return attrs.evolve(
            self, status=OrderStatus.REFUNDED, updated_at=datetime.now(timezone.utc)
        )

    @Logger.io
    def confirm_delivery(self, *, actor_id: int) -> 'Order':
        if self.status != OrderStatus.SHIPPED:
            raise InvalidStateTransitionError('Only shipped orders can be marked delivered')
        self.ensure_transition(OrderStatus.REDEEMED)
        now = datetime.now(timezone.utc)
        return attrs.evolve(
            self,
            status=OrderStatus.REDEEMED,
            redeemed_at=now,
            redeemed_by=actor_id,
            updated_at=now,
        )
