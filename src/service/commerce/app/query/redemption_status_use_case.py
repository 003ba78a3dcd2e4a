"""
Redemption Status Use Case

Authoritative status lookup by redemption token (the client's polling
fallback) and the SSE stream that follows the status mirror.
"""

from collections.abc import AsyncGenerator
from contextlib import aclosing
from datetime import datetime
from typing import Any, Callable, Optional, Self

import anyio
from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_status_mirror import IStatusMirror
from src.service.commerce.app.service.order_access import ensure_can_view_order
from src.service.commerce.domain.entity.order_entity import OrderStatus
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.domain.value_object.redemption import TokenSubject


# Statuses that end a client's wait on a token
FINAL_STATUSES = frozenset(
    {
        OrderStatus.REDEEMED.value,
        OrderStatus.CANCELED.value,
        OrderStatus.REFUNDED.value,
        'used',
    }
)


class RedemptionStatusUseCase:
    def __init__(
        self,
        *,
        uow_factory: Callable[[], AbstractUnitOfWork],
        status_mirror: IStatusMirror,
    ) -> None:
        self.uow_factory = uow_factory
        self.status_mirror = status_mirror

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
        status_mirror: IStatusMirror = Depends(Provide[Container.status_mirror]),
    ) -> Self:
        return cls(uow_factory=uow_factory, status_mirror=status_mirror)

    @Logger.io
    async def get_status(self, *, actor: UserEntity, token: str) -> dict[str, Any]:
        """
        Read the status from the relational store, never from the mirror.

        Raises:
            NotFoundError: unknown token, or the actor may not see it
        """
        async with self.uow_factory() as uow:
            order = await uow.order_query_repo.get_by_redemption_token(token=token)
            if order is not None:
                await ensure_can_view_order(uow=uow, actor=actor, order=order)
                return self._document(
                    token=token,
                    subject=TokenSubject.ORDER,
                    status=order.status.value,
                    updated_at=order.updated_at,
                    actor_id=order.redeemed_by,
                )

            ticket = await uow.issued_ticket_repo.get_by_redemption_token(token=token)
            if ticket is None:
                raise NotFoundError('Redemption code not found')
            ticket_order = await uow.order_query_repo.get_by_id(order_id=ticket.order_id)
            if ticket_order is None:
                raise NotFoundError('Redemption code not found')
            await ensure_can_view_order(uow=uow, actor=actor, order=ticket_order)

        if ticket.is_used:
            status = 'used'
        elif ticket_order.status in (OrderStatus.CANCELED, OrderStatus.REFUNDED):
            status = ticket_order.status.value
        else:
            status = 'issued'
        return self._document(
            token=token,
            subject=TokenSubject.TICKET,
            status=status,
            updated_at=ticket.used_at or ticket.created_at,
            actor_id=ticket.used_by,
        )

    @staticmethod
    def _document(
        *,
        token: str,
        subject: TokenSubject,
        status: str,
        updated_at: Optional[datetime],
        actor_id: Optional[int],
    ) -> dict[str, Any]:
        return {
            'token': token,
            'subject': subject.value,
            'status': status,
            'updated_at': updated_at.isoformat() if updated_at else None,
            'actor_id': actor_id,
        }

    async def stream(
        self, *, actor: UserEntity, token: str
    ) -> AsyncGenerator[dict[str, Any], None]:
        """
        Yield the authoritative status first, then mirror updates until a final status.

        The channel is subscribed before the store is read: a change committed in
        between shows up in the read, one committed later arrives on the channel.

        Raises:
            NotFoundError: unknown token, or the actor may not see it
        """
        try:
            async with self.status_mirror.subscribe(token=token) as subscription:
                current = await self.get_status(actor=actor, token=token)
                yield current
                if current['status'] in FINAL_STATUSES:
                    return

                async with aclosing(subscription) as updates:
                    async for document in updates:
                        yield document
                        if document.get('status') in FINAL_STATUSES:
                            return

        except anyio.get_cancelled_exc_class():
            Logger.base.info('🔌 [SSE] Status stream client disconnected')
            raise
        except Exception as e:
            Logger.base.error(f'[SSE] Error in status stream: {type(e).__name__}: {e}')
            raise
