"""
Handle Payment Webhook Use Case

At-least-once, possibly out-of-order notifications from the payment processor.
Every branch is a function of the stored order state plus the notification:
a replay finds the order already moved and becomes a no-op.
"""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Callable, Optional, Self
import uuid

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.commerce_metrics import metrics
from src.service.commerce.app.dto.payment_dto import PaymentNotification
from src.service.commerce.app.interface.i_payment_gateway import IPaymentGateway
from src.service.commerce.app.service.order_notification_service import OrderNotificationService
from src.service.commerce.app.service.order_stock_service import release_order_stock
from src.service.commerce.app.service.status_sync_publisher import StatusSyncPublisher
from src.service.commerce.app.service.ticket_issuance_service import TicketIssuanceService
from src.service.commerce.domain.commerce_errors import InvalidSignatureError
from src.service.commerce.domain.entity.order_entity import Order, OrderStatus
from src.service.commerce.domain.value_object.redemption import TokenSubject


class PaymentEventType(StrEnum):
    SUCCEEDED = 'payment_intent.succeeded'
    CANCELED = 'payment_intent.canceled'
    PAYMENT_FAILED = 'payment_intent.payment_failed'


class WebhookOutcome(StrEnum):
    APPLIED = 'applied'
    NOOP = 'noop'
    IGNORED = 'ignored'


class HandlePaymentWebhookUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
        ticket_issuance_service: TicketIssuanceService,
        status_sync_publisher: StatusSyncPublisher,
        order_notification_service: OrderNotificationService,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
        self.ticket_issuance_service = ticket_issuance_service
        self.status_sync_publisher = status_sync_publisher
        self.order_notification_service = order_notification_service
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        ticket_issuance_service: TicketIssuanceService = Depends(
            Provide[Container.ticket_issuance_service]
        ),
        status_sync_publisher: StatusSyncPublisher = Depends(
            Provide[Container.status_sync_publisher]
        ),
        order_notification_service: OrderNotificationService = Depends(
            Provide[Container.order_notification_service]
        ),
    ) -> Self:
        return cls(
            uow_factory=uow_factory,
            payment_gateway=payment_gateway,
            ticket_issuance_service=ticket_issuance_service,
            status_sync_publisher=status_sync_publisher,
            order_notification_service=order_notification_service,
        )

    @Logger.io
    async def execute(self, *, payload: bytes, signature_header: str) -> WebhookOutcome:
        """
        Raises:
            InvalidSignatureError: before any parsing or state change
        """
        try:
            notification = self.payment_gateway.parse_notification(
                payload=payload, signature_header=signature_header
            )
        except InvalidSignatureError:
            metrics.record_webhook(event_type='unknown', result='rejected')
            raise

        with self.tracer.start_as_current_span(
            'use_case.handle_payment_webhook',
            attributes={
                'webhook.event_id': notification.event_id,
                'webhook.event_type': notification.event_type,
            },
        ):
            match notification.event_type:
                case PaymentEventType.SUCCEEDED:
                    outcome = await self._confirm_payment(notification=notification)
                case PaymentEventType.CANCELED:
                    outcome = await self._cancel_unpaid(notification=notification)
                case PaymentEventType.PAYMENT_FAILED:
                    # The buyer can retry with the same client secret
                    Logger.base.info(
                        f'💳 [WEBHOOK] Payment failed for intent {notification.intent_id}'
                    )
                    outcome = WebhookOutcome.NOOP
                case _:
                    outcome = WebhookOutcome.IGNORED

        metrics.record_webhook(event_type=notification.event_type, result=outcome.value)
        return outcome

    @staticmethod
    def _order_id_from(notification: PaymentNotification) -> Optional[uuid.UUID]:
        raw = notification.metadata.get('order_id')
        if not raw:
            return None
        try:
            return uuid.UUID(raw)
        except ValueError:
            return None

    async def _load_correlated_order(
        self, *, uow: AbstractUnitOfWork, notification: PaymentNotification
    ) -> Optional[Order]:
        order_id = self._order_id_from(notification)
        if order_id is None:
            Logger.base.warning(
                f'⚠️ [WEBHOOK] {notification.event_id} carries no usable order_id, ignored'
            )
            return None

        order = await uow.order_query_repo.get_by_id(order_id=order_id)
        if order is None:
            Logger.base.warning(f'⚠️ [WEBHOOK] Order {order_id} not found, ignored')
            return None

        if order.payment_reference != notification.intent_id:
            Logger.base.warning(
                f'⚠️ [WEBHOOK] Order {order_id} is bound to another intent, '
                f'got {notification.intent_id}; ignored'
            )
            return None
        return order

    async def _confirm_payment(self, *, notification: PaymentNotification) -> WebhookOutcome:
        now = datetime.now(timezone.utc)
        async with self.uow_factory() as uow:
            order = await self._load_correlated_order(uow=uow, notification=notification)
            if order is None:
                return WebhookOutcome.NOOP

            moved = await uow.order_command_repo.transition_status(
                order_id=order.id,
                expected=[OrderStatus.PENDING],
                target=OrderStatus.PAID,
                changes={'paid_at': now, 'payment_reference': notification.intent_id},
            )
            if not moved:
                current = await uow.order_query_repo.get_by_id(order_id=order.id)
                if current is not None and current.status == OrderStatus.CANCELED:
                    Logger.base.warning(
                        f'💸 [WEBHOOK] Payment captured for canceled order {order.id} '
                        f'(intent {notification.intent_id}); manual refund required'
                    )
                else:
                    Logger.base.info(f'🔁 [WEBHOOK] Order {order.id} already confirmed, replay')
                return WebhookOutcome.NOOP

            tickets = []
            if order.is_ticket_order:
                tickets = await self.ticket_issuance_service.issue_for_order(
                    uow=uow, order=order, payment_reference=notification.intent_id
                )

            buyer = await uow.user_query_repo.get_by_id(user_id=order.buyer_id)
            await uow.commit()

        paid_order = attrs.evolve(order, status=OrderStatus.PAID, paid_at=now)
        Logger.base.info(f'✅ [WEBHOOK] Order {order.id} paid, {len(tickets)} ticket(s) issued')

        self.status_sync_publisher.publish_in_background(
            token=order.redemption_token, subject=TokenSubject.ORDER, status=OrderStatus.PAID
        )
        self.status_sync_publisher.publish_many_in_background(
            tokens=[ticket.redemption_token for ticket in tickets],
            subject=TokenSubject.TICKET,
            status='issued',
        )
        self.order_notification_service.order_confirmed(
            order=paid_order, buyer_email=buyer.email if buyer else None
        )
        return WebhookOutcome.APPLIED

    async def _cancel_unpaid(self, *, notification: PaymentNotification) -> WebhookOutcome:
        async with self.uow_factory() as uow:
            order = await self._load_correlated_order(uow=uow, notification=notification)
            if order is None:
                return WebhookOutcome.NOOP

            moved = await uow.order_command_repo.transition_status(
                order_id=order.id,
                expected=[OrderStatus.PENDING],
                target=OrderStatus.CANCELED,
                changes={'canceled_at': datetime.now(timezone.utc)},
            )
            if not moved:
                return WebhookOutcome.NOOP

            await release_order_stock(uow=uow, order=order)
            await uow.commit()

        Logger.base.info(f'🚫 [WEBHOOK] Order {order.id} canceled by the processor')
        self.status_sync_publisher.publish_in_background(
            token=order.redemption_token,
            subject=TokenSubject.ORDER,
            status=OrderStatus.CANCELED,
        )
        return WebhookOutcome.APPLIED
