"""
Release Expired Reservations Use Case

Online orders reserve stock at checkout. When the buyer never completes
payment, the order stays pending; after the TTL it is canceled here and its
stock returned. The same conditional pending → canceled move as every other
cancel path, so a late payment confirmation and the sweeper cannot both win.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.commerce_metrics import metrics
from src.service.commerce.app.interface.i_payment_gateway import IPaymentGateway
from src.service.commerce.app.service.order_stock_service import release_order_stock
from src.service.commerce.app.service.status_sync_publisher import StatusSyncPublisher
from src.service.commerce.domain.entity.order_entity import Order, OrderStatus
from src.service.commerce.domain.value_object.redemption import TokenSubject


class ReleaseExpiredReservationsUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
        status_sync_publisher: StatusSyncPublisher,
        ttl: timedelta = timedelta(minutes=settings.RESERVATION_TTL_MINUTES),
        batch_size: int = 100,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.status_sync_publisher = status_sync_publisher
        self.ttl = ttl
        self.batch_size = batch_size
        self.tracer = trace.get_tracer(__name__)

    @Logger.io
    async def execute(self, *, now: Optional[datetime] = None) -> int:
        """
        Returns:
            Number of orders this run canceled
        """
        cutoff = (now or datetime.now(timezone.utc)) - self.ttl
        with self.tracer.start_as_current_span('use_case.release_expired_reservations'):
            async with self.uow_factory() as uow:
                expired = await uow.order_query_repo.list_expired_pending(
                    created_before=cutoff, limit=self.batch_size
                )

            released = 0
            for order in expired:
                if await self._expire(order=order):
                    released += 1

        if released:
            metrics.expired_reservations.inc(released)
            Logger.base.info(f'⏰ [SWEEPER] Released {released} expired reservation(s)')
        return released

    async def _expire(self, *, order: Order) -> bool:
        # One transaction per order: a failure on one does not hold back the batch
        async with self.uow_factory() as uow:
            moved = await uow.order_command_repo.transition_status(
                order_id=order.id,
                expected=[OrderStatus.PENDING],
                target=OrderStatus.CANCELED,
                changes={'canceled_at': datetime.now(timezone.utc)},
            )
            if not moved:
                return False
            await release_order_stock(uow=uow, order=order)
            await uow.commit()

        if order.payment_reference:
            await self.payment_gateway.cancel_intent(intent_id=order.payment_reference)
        self.status_sync_publisher.publish_in_background(
            token=order.redemption_token, subject=TokenSubject.ORDER, status=OrderStatus.CANCELED
        )
        return True
