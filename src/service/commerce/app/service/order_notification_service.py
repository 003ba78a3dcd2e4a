import asyncio
from typing import Any

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_mailer import IMailer, MailTemplate
from src.service.commerce.domain.entity.order_entity import Order


class OrderNotificationService:
    """Queues buyer emails after commit; a mail failure never affects the order"""

    def __init__(self, *, mailer: IMailer) -> None:
        self.mailer = mailer
        self._tasks: set[asyncio.Task] = set()

    @staticmethod
    def _context(order: Order) -> dict[str, Any]:
        item = order.items[0] if order.items else None
        return {
            'order_id': str(order.id),
            'product_name': item.product_name if item else '',
            'quantity': item.quantity if item else 0,
            'total_price': order.total_price,
            'status': order.status.value,
            'tracking_number': order.tracking_number or '',
        }

    async def _queue(self, *, template: MailTemplate, to: str, order: Order) -> None:
        try:
            await self.mailer.queue(template=template, to=to, context=self._context(order))
        except Exception as e:
            Logger.base.warning(f'⚠️ [MAIL] {template} for order {order.id} not queued: {e}')

    def _spawn(self, *, template: MailTemplate, to: str | None, order: Order) -> None:
        if not to:
            Logger.base.warning(f'⚠️ [MAIL] No recipient for {template} of order {order.id}')
            return
        task = asyncio.create_task(self._queue(template=template, to=to, order=order))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def order_confirmed(self, *, order: Order, buyer_email: str | None) -> None:
        self._spawn(template=MailTemplate.ORDER_CONFIRMATION, to=buyer_email, order=order)

    def order_shipped(self, *, order: Order, buyer_email: str | None) -> None:
        self._spawn(template=MailTemplate.SHIPPING_NOTIFICATION, to=buyer_email, order=order)

    async def drain(self) -> None:
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
