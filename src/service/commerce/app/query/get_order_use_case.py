from typing import Callable, Self
from uuid import UUID

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.dto.order_dto import OrderDetail
from src.service.commerce.app.service.order_access import ensure_can_view_order
from src.service.commerce.domain.entity.user_entity import UserEntity


class GetOrderUseCase:
    def __init__(self, *, uow_factory: Callable[[], AbstractUnitOfWork]) -> None:
        self.uow_factory = uow_factory

    @classmethod
    @inject
    def depends(
        cls,
        uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
            Provide[Container.unit_of_work.provider]
        ),
    ) -> Self:
        return cls(uow_factory=uow_factory)

    @Logger.io
    async def execute(self, *, actor: UserEntity, order_id: UUID) -> OrderDetail:
        """Visible to the buyer, the selling artist and admins"""
        async with self.uow_factory() as uow:
            order = await uow.order_query_repo.get_by_id(order_id=order_id)
            if order is None:
                raise NotFoundError('Order not found')
            await ensure_can_view_order(uow=uow, actor=actor, order=order)

            tickets = []
            if order.is_ticket_order:
                tickets = await uow.issued_ticket_repo.list_by_order(order_id=order.id)
        return OrderDetail(order=order, tickets=tickets)
