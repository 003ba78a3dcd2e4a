"""Mailer that renders plain-text templates and logs them instead of sending"""

from datetime import datetime, timezone
from typing import Any, List

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_mailer import IMailer, MailTemplate


_SUBJECTS: dict[MailTemplate, str] = {
    MailTemplate.ORDER_CONFIRMATION: 'Order Confirmation - Order #{order_id}',
    MailTemplate.SHIPPING_NOTIFICATION: 'Your order has shipped - Order #{order_id}',
}

_BODIES: dict[MailTemplate, str] = {
    MailTemplate.ORDER_CONFIRMATION: """
Thank you for your order!

Order Details:
--------------
Order ID: #{order_id}
Product: {product_name}
Quantity: {quantity}
Total: ¥{total_price:,}
Status: {status}
""",
    MailTemplate.SHIPPING_NOTIFICATION: """
Your order is on its way.

Shipping Details:
-----------------
Order ID: #{order_id}
Product: {product_name}
Tracking number: {tracking_number}
""",
}


class LoggingMailer(IMailer):
    def __init__(self) -> None:
        self.sent: List[dict[str, Any]] = []  # Rendered messages, kept for inspection

    @Logger.io
    async def queue(self, *, template: MailTemplate, to: str, context: dict[str, Any]) -> None:
        subject = _SUBJECTS[template].format(**context)
        body = _BODIES[template].format(**context).strip()
        message = {
            'template': template.value,
            'to': to,
            'subject': subject,
            'body': body,
            'queued_at': datetime.now(timezone.utc),
        }
        self.sent.append(message)
        Logger.base.info(f'📧 [MAIL] Queued "{subject}" for {to}')
