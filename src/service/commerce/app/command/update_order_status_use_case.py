"""
Update Order Status Use Case

Out-of-band transitions outside checkout/webhook/redemption:
- buyer cancels their own pending order
- admin cancels / refunds / confirms delivery
- admin or the owning artist ships a mail order with a tracking number

The entity validates the move; the store applies it with a conditional update
keyed on the status that was read, so a concurrent change wins cleanly.
"""

from typing import Callable, Optional, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import ConflictError, ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_payment_gateway import IPaymentGateway
from src.service.commerce.app.service.order_access import order_artist_id
from src.service.commerce.app.service.order_notification_service import OrderNotificationService
from src.service.commerce.app.service.order_stock_service import release_order_stock
from src.service.commerce.app.service.status_sync_publisher import StatusSyncPublisher
from src.service.commerce.domain.commerce_errors import InvalidStateTransitionError
from src.service.commerce.domain.entity.order_entity import Order, OrderStatus, PaymentMethod
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.domain.value_object.redemption import TokenSubject


class UpdateOrderStatusUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        payment_gateway: IPaymentGateway,
        status_sync_publisher: StatusSyncPublisher,
        order_notification_service: OrderNotificationService,
    ) -> None:
        self.uow_factory = uow_factory
        self.payment_gateway = payment_gateway
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
            status_sync_publisher=status_sync_publisher,
            order_notification_service=order_notification_service,
        )

    @Logger.io
    async def cancel_by_buyer(self, *, buyer: UserEntity, order_id: UUID) -> Order:
        """
        Raises:
            NotFoundError: order does not exist or belongs to someone else
            InvalidStateTransitionError: order is no longer pending
        """
        with self.tracer.start_as_current_span(
            'use_case.cancel_order_by_buyer', attributes={'order.id': str(order_id)}
        ):
            async with self.uow_factory() as uow:
                order = await uow.order_query_repo.get_by_id(order_id=order_id)
                if order is None or order.buyer_id != buyer.id:
                    raise NotFoundError('Order not found')
                if order.status != OrderStatus.PENDING:
                    raise InvalidStateTransitionError('Only pending orders can be canceled')

                canceled = await self._cancel(uow=uow, order=order)
                ticket_tokens = await self._open_ticket_tokens(uow=uow, order=order)
                await uow.commit()

            await self._after_cancel(
                previous=order, canceled=canceled, ticket_tokens=ticket_tokens
            )
            return canceled

    @Logger.io
    async def transition(
        self,
        *,
        actor: UserEntity,
        order_id: UUID,
        target: OrderStatus,
        tracking_number: Optional[str] = None,
    ) -> Order:
        """
        Raises:
            NotFoundError: order does not exist
            ForbiddenError: actor may not perform this transition
            InvalidStateTransitionError: the lifecycle table forbids the move
            ConflictError: the order changed concurrently
        """
        with self.tracer.start_as_current_span(
            'use_case.transition_order',
            attributes={'order.id': str(order_id), 'order.target': target.value},
        ):
            async with self.uow_factory() as uow:
                order = await uow.order_query_repo.get_by_id(order_id=order_id)
                if order is None:
                    raise NotFoundError('Order not found')

                match target:
                    case OrderStatus.SHIPPED:
                        await self._ensure_can_ship(uow=uow, actor=actor, order=order)
                        updated = order.ship(tracking_number=tracking_number or '')
                        await self._apply(
                            uow=uow,
                            previous=order,
                            updated=updated,
                            changes={
                                'tracking_number': updated.tracking_number,
                                'shipped_at': updated.shipped_at,
                            },
                        )
                    case OrderStatus.CANCELED:
                        self._ensure_admin(actor)
                        updated = await self._cancel(uow=uow, order=order)
                    case OrderStatus.REFUNDED:
                        self._ensure_admin(actor)
                        updated = order.refund()
                        await self._apply(uow=uow, previous=order, updated=updated, changes={})
                    case OrderStatus.REDEEMED:
                        self._ensure_admin(actor)
                        updated = order.confirm_delivery(actor_id=actor.id)
                        await self._apply(
                            uow=uow,
                            previous=order,
                            updated=updated,
                            changes={
                                'redeemed_at': updated.redeemed_at,
                                'redeemed_by': updated.redeemed_by,
                            },
                        )
                    case OrderStatus.PENDING | OrderStatus.PAID:
                        raise InvalidStateTransitionError(
                            f'{target} is set by checkout and payment confirmation only'
                        )

                buyer = await uow.user_query_repo.get_by_id(user_id=order.buyer_id)
                ticket_tokens: list[str] = []
                if target in (OrderStatus.CANCELED, OrderStatus.REFUNDED):
                    ticket_tokens = await self._open_ticket_tokens(uow=uow, order=order)
                await uow.commit()

            Logger.base.info(
                f'🔧 [ORDER] {order.id}: {order.status} → {updated.status} by {actor.id}'
            )

            match target:
                case OrderStatus.CANCELED:
                    await self._after_cancel(
                        previous=order, canceled=updated, ticket_tokens=ticket_tokens
                    )
                case OrderStatus.SHIPPED:
                    self.status_sync_publisher.publish_in_background(
                        token=order.redemption_token,
                        subject=TokenSubject.ORDER,
                        status=updated.status,
                        actor_id=actor.id,
                    )
                    self.order_notification_service.order_shipped(
                        order=updated, buyer_email=buyer.email if buyer else None
                    )
                case _:
                    self.status_sync_publisher.publish_in_background(
                        token=order.redemption_token,
                        subject=TokenSubject.ORDER,
                        status=updated.status,
                        actor_id=actor.id,
                    )
                    self.status_sync_publisher.publish_many_in_background(
                        tokens=ticket_tokens,
                        subject=TokenSubject.TICKET,
                        status=updated.status,
                        actor_id=actor.id,
                    )
            return updated

    @staticmethod
    def _ensure_admin(actor: UserEntity) -> None:
        actor.validate_active()
        if not actor.is_admin:
            raise ForbiddenError('Only admins can perform this transition')

    @staticmethod
    async def _ensure_can_ship(
        *, uow: AbstractUnitOfWork, actor: UserEntity, order: Order
    ) -> None:
        actor.validate_active()
        if actor.is_admin:
            return
        artist_id = await order_artist_id(uow=uow, order=order)
        if not actor.owns_catalog_entry(artist_id):
            raise ForbiddenError('Only the selling artist or an admin can ship this order')

    @staticmethod
    async def _apply(
        *, uow: AbstractUnitOfWork, previous: Order, updated: Order, changes: dict
    ) -> None:
        moved = await uow.order_command_repo.transition_status(
            order_id=previous.id,
            expected=[previous.status],
            target=updated.status,
            changes=changes,
        )
        if not moved:
            raise ConflictError('Order was modified concurrently, reload and retry')

    async def _cancel(self, *, uow: AbstractUnitOfWork, order: Order) -> Order:
        canceled = order.cancel()
        await self._apply(
            uow=uow, previous=order, updated=canceled, changes={'canceled_at': canceled.canceled_at}
        )
        if order.releases_stock_on_cancel():
            await release_order_stock(uow=uow, order=order)
        return canceled

    @staticmethod
    async def _open_ticket_tokens(*, uow: AbstractUnitOfWork, order: Order) -> list[str]:
        # Used tickets already sit at a final status in the mirror
        if not order.is_ticket_order:
            return []
        tickets = await uow.issued_ticket_repo.list_by_order(order_id=order.id)
        return [ticket.redemption_token for ticket in tickets if not ticket.is_used]

    async def _after_cancel(
        self, *, previous: Order, canceled: Order, ticket_tokens: list[str]
    ) -> None:
        if (
            previous.status == OrderStatus.PENDING
            and previous.payment_method == PaymentMethod.ONLINE
            and previous.payment_reference
        ):
            await self.payment_gateway.cancel_intent(intent_id=previous.payment_reference)
        elif previous.payment_method == PaymentMethod.ONLINE:
            Logger.base.warning(
                f'💸 [ORDER] Order {previous.id} canceled after payment; refund manually'
            )

        self.status_sync_publisher.publish_in_background(
            token=canceled.redemption_token,
            subject=TokenSubject.ORDER,
            status=OrderStatus.CANCELED,
        )
        self.status_sync_publisher.publish_many_in_background(
            tokens=ticket_tokens, subject=TokenSubject.TICKET, status=OrderStatus.CANCELED
        )
