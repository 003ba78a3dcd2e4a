from typing import List

from src.service.commerce.domain.entity.order_entity import (
    FulfillmentMethod,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMethod,
)
from src.service.commerce.domain.value_object.shipping_address import ShippingAddress
from src.service.commerce.driven_adapter.model.order_item_model import OrderItemModel
from src.service.commerce.driven_adapter.model.order_model import OrderModel
from src.service.commerce.driven_adapter.repo.repo_utils import as_utc


def item_to_entity(model: OrderItemModel) -> OrderItem:
    return OrderItem(
        id=model.id,
        product_id=model.product_id,
        ticket_type_id=model.ticket_type_id,
        quantity=model.quantity,
        unit_price=model.unit_price,
        product_name=model.product_name,
    )


def order_to_entity(model: OrderModel, items: List[OrderItemModel]) -> Order:
    return Order(
        id=model.id,
        buyer_id=model.buyer_id,
        total_price=model.total_price,
        platform_fee=model.platform_fee,
        payout_amount=model.payout_amount,
        status=OrderStatus(model.status),
        payment_method=PaymentMethod(model.payment_method),
        fulfillment_method=FulfillmentMethod(model.fulfillment_method),
        items=[item_to_entity(item) for item in items],
        shipping_address=(
            ShippingAddress.from_dict(model.shipping_address) if model.shipping_address else None
        ),
        payment_reference=model.payment_reference,
        redemption_token=model.redemption_token,
        tracking_number=model.tracking_number,
        redeemed_by=model.redeemed_by,
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
        paid_at=as_utc(model.paid_at),
        shipped_at=as_utc(model.shipped_at),
        redeemed_at=as_utc(model.redeemed_at),
        canceled_at=as_utc(model.canceled_at),
    )


def order_to_model(order: Order) -> OrderModel:
    return OrderModel(
        id=order.id,
        buyer_id=order.buyer_id,
        total_price=order.total_price,
        platform_fee=order.platform_fee,
        payout_amount=order.payout_amount,
        status=order.status.value,
        payment_method=order.payment_method.value,
        fulfillment_method=order.fulfillment_method.value,
        shipping_address=order.shipping_address.to_dict() if order.shipping_address else None,
        payment_reference=order.payment_reference,
        redemption_token=order.redemption_token,
        tracking_number=order.tracking_number,
        created_at=order.created_at,
        updated_at=order.updated_at,
    )
