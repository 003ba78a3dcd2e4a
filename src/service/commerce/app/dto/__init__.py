"""Application layer DTOs"""

from src.service.commerce.app.dto.checkout_dto import CheckoutResult
from src.service.commerce.app.dto.order_dto import OrderDetail
from src.service.commerce.app.dto.payment_dto import PaymentIntentHandle, PaymentNotification

__all__ = [
    'CheckoutResult',
    'OrderDetail',
    'PaymentIntentHandle',
    'PaymentNotification',
]
