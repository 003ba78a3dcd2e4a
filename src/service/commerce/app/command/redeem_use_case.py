"""
Redeem Use Case

Validates and applies a pickup/entry scan. Order of checks:
1. Resolve the token (order first, then issued ticket) and match the scan mode
2. Actor must be an artist owning the catalog entry, or an admin
3. Already redeemed / used → AlreadyRedeemed without side effects
4. Fulfillment preconditions
5. One conditional update; losing a concurrent race also yields AlreadyRedeemed
"""

from datetime import datetime, timezone
from typing import Callable, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import CustomBaseError, ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.commerce_metrics import metrics
from src.service.commerce.app.service.order_access import order_artist_id
from src.service.commerce.app.service.status_sync_publisher import StatusSyncPublisher
from src.service.commerce.domain.commerce_errors import (
    AlreadyRedeemedError,
    InvalidStateTransitionError,
    WrongRedemptionModeError,
)
from src.service.commerce.domain.entity.issued_ticket_entity import IssuedTicket
from src.service.commerce.domain.entity.order_entity import (
    FulfillmentMethod,
    Order,
    OrderStatus,
    PaymentMethod,
    awaiting_fulfillment_statuses,
)
from src.service.commerce.domain.entity.sellable_unit_entity import UnitKind
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.domain.value_object.redemption import (
    RedemptionMode,
    RedemptionResult,
    TokenSubject,
    mode_for_subject,
)


_VOID_ORDER_STATUSES = frozenset({OrderStatus.CANCELED, OrderStatus.REFUNDED})


class RedeemUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        status_sync_publisher: StatusSyncPublisher,
    ) -> None:
        self.uow_factory = uow_factory
        self.status_sync_publisher = status_sync_publisher
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        status_sync_publisher: StatusSyncPublisher = Depends(
            Provide[Container.status_sync_publisher]
        ),
    ) -> Self:
        return cls(uow_factory=uow_factory, status_sync_publisher=status_sync_publisher)

    @Logger.io
    async def execute(
        self, *, actor: UserEntity, token: str, mode: RedemptionMode
    ) -> RedemptionResult:
        """
        Raises:
            NotFoundError: unknown token
            WrongRedemptionModeError: token belongs to the other mode
            ForbiddenError: actor may not redeem this entry
            AlreadyRedeemedError: the token was used before (or concurrently)
            InvalidStateTransitionError: payment/fulfillment does not allow redemption
        """
        with self.tracer.start_as_current_span(
            'use_case.redeem', attributes={'redemption.mode': mode.value, 'actor.id': actor.id}
        ):
            try:
                result = await self._redeem(actor=actor, token=token, mode=mode)
            except CustomBaseError as e:
                metrics.record_redemption(mode=mode.value, result=e.code)
                raise

        metrics.record_redemption(mode=mode.value, result='redeemed')
        self.status_sync_publisher.publish_in_background(
            token=token,
            subject=result.subject,
            status=result.status,
            actor_id=actor.id,
        )
        return result

    async def _redeem(
        self, *, actor: UserEntity, token: str, mode: RedemptionMode
    ) -> RedemptionResult:
        async with self.uow_factory() as uow:
            target: Order | IssuedTicket | None
            target = await uow.order_query_repo.get_by_redemption_token(token=token)
            if target is None:
                target = await uow.issued_ticket_repo.get_by_redemption_token(token=token)
                if target is None:
                    raise NotFoundError('Redemption code not found')

            subject = TokenSubject.ORDER if isinstance(target, Order) else TokenSubject.TICKET
            expected_mode = mode_for_subject(subject)
            if mode != expected_mode:
                raise WrongRedemptionModeError(
                    f'This code belongs to {expected_mode} redemption',
                    expected_mode=expected_mode.value,
                )

            if isinstance(target, Order):
                result = await self._redeem_order(uow=uow, actor=actor, order=target)
            else:
                result = await self._redeem_ticket(uow=uow, actor=actor, ticket=target)

            await uow.commit()

        Logger.base.info(f'🎟️ [REDEEM] {subject} {result.subject_id} redeemed by {actor.id}')
        return result

    @staticmethod
    def _ensure_can_redeem(*, actor: UserEntity, artist_id: Optional[int]) -> None:
        actor.validate_active()
        if not actor.can_redeem:
            raise ForbiddenError('Only artists and admins can redeem codes')
        # Catalog entry deleted: only an admin can still hand over the goods
        if not actor.owns_catalog_entry(artist_id):
            raise ForbiddenError('You can only redeem codes for your own items')

    async def _redeem_order(
        self, *, uow: AbstractUnitOfWork, actor: UserEntity, order: Order
    ) -> RedemptionResult:
        item = order.items[0] if order.items else None
        artist_id = await order_artist_id(uow=uow, order=order)
        self._ensure_can_redeem(actor=actor, artist_id=artist_id)

        if order.status == OrderStatus.REDEEMED:
            raise AlreadyRedeemedError()
        if order.fulfillment_method != FulfillmentMethod.VENUE:
            raise InvalidStateTransitionError('Mailed orders are not redeemed at the venue')
        awaiting = awaiting_fulfillment_statuses(order.payment_method)
        if order.status not in awaiting:
            raise InvalidStateTransitionError(f'Order is {order.status}, payment not confirmed')

        now = datetime.now(timezone.utc)
        changes = {'redeemed_at': now, 'redeemed_by': actor.id}
        if order.payment_method == PaymentMethod.CASH and order.paid_at is None:
            changes['paid_at'] = now  # Cash is collected at the counter
        moved = await uow.order_command_repo.transition_status(
            order_id=order.id, expected=awaiting, target=OrderStatus.REDEEMED, changes=changes
        )
        if not moved:
            raise AlreadyRedeemedError()

        return RedemptionResult(
            subject=TokenSubject.ORDER,
            subject_id=str(order.id),
            order_id=str(order.id),
            status=OrderStatus.REDEEMED.value,
            redeemed_at=now,
            redeemed_by=actor.id,
            title=item.product_name if item else '',
            quantity=item.quantity if item else 0,
        )

    async def _redeem_ticket(
        self, *, uow: AbstractUnitOfWork, actor: UserEntity, ticket: IssuedTicket
    ) -> RedemptionResult:
        unit = await uow.inventory_ledger.get_unit(
            kind=UnitKind.TICKET, unit_id=ticket.ticket_type_id
        )
        self._ensure_can_redeem(actor=actor, artist_id=unit.artist_id if unit else None)

        if ticket.is_used:
            raise AlreadyRedeemedError()
        order = await uow.order_query_repo.get_by_id(order_id=ticket.order_id)
        if order is None or order.status in _VOID_ORDER_STATUSES:
            raise InvalidStateTransitionError('The order of this ticket is no longer valid')

        now = datetime.now(timezone.utc)
        used = await uow.issued_ticket_repo.mark_used_if_unused(
            ticket_id=ticket.id, actor_id=actor.id, at=now
        )
        if not used:
            raise AlreadyRedeemedError()

        # Entry with the last unused ticket completes the order
        if await uow.issued_ticket_repo.count_unused(order_id=ticket.order_id) == 0:
            changes = {'redeemed_at': now, 'redeemed_by': actor.id}
            if order.payment_method == PaymentMethod.CASH and order.paid_at is None:
                changes['paid_at'] = now
            await uow.order_command_repo.transition_status(
                order_id=ticket.order_id,
                expected=awaiting_fulfillment_statuses(order.payment_method),
                target=OrderStatus.REDEEMED,
                changes=changes,
            )

        return RedemptionResult(
            subject=TokenSubject.TICKET,
            subject_id=str(ticket.id),
            order_id=str(ticket.order_id),
            status='used',
            redeemed_at=now,
            redeemed_by=actor.id,
            title=unit.display_name if unit else '',
            quantity=1,
            seat_label=ticket.seat_label,
        )
