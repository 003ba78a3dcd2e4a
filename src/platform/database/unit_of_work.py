"""
Unit of Work Pattern - one session, one transaction, many repositories

Architecture:
- UoW owns the session lifecycle (opened on enter, closed on exit)
- UoW owns commit/rollback; leaving the block without commit rolls back
- Repositories receive the shared session so every statement joins the same transaction
- Use cases coordinate ledger, order and ticket writes through one UoW
"""

from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager
from typing import TYPE_CHECKING, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession


if TYPE_CHECKING:
    from src.service.commerce.app.interface.i_inventory_ledger import IInventoryLedger
    from src.service.commerce.app.interface.i_issued_ticket_repo import IIssuedTicketRepo
    from src.service.commerce.app.interface.i_order_command_repo import IOrderCommandRepo
    from src.service.commerce.app.interface.i_order_query_repo import IOrderQueryRepo
    from src.service.commerce.app.interface.i_user_query_repo import IUserQueryRepo


class AbstractUnitOfWork(abc.ABC):
    """
    Abstract Unit of Work for the commerce service

    Usage:
        async with uow:
            reserved = await uow.inventory_ledger.try_reserve(...)
            await uow.order_command_repo.create(order=order)
            await uow.commit()

    The same instance may be entered again after exit; each block is a new transaction.
    """

    inventory_ledger: IInventoryLedger
    order_command_repo: IOrderCommandRepo
    order_query_repo: IOrderQueryRepo
    issued_ticket_repo: IIssuedTicketRepo
    user_query_repo: IUserQueryRepo

    async def __aenter__(self) -> AbstractUnitOfWork:
        return self

    async def __aexit__(self, *args) -> None:
        await self.rollback()

    async def commit(self) -> None:
        await self._commit()

    @abc.abstractmethod
    async def _commit(self) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    async def rollback(self) -> None:
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    def __init__(
        self, session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]]
    ) -> None:
        self._session_factory = session_factory
        self._session_cm: Optional[AbstractAsyncContextManager[AsyncSession]] = None
        self.session: Optional[AsyncSession] = None

    async def __aenter__(self) -> SqlAlchemyUnitOfWork:
        from src.service.commerce.driven_adapter.repo.inventory_ledger_impl import (
            InventoryLedgerImpl,
        )
        from src.service.commerce.driven_adapter.repo.issued_ticket_repo_impl import (
            IssuedTicketRepoImpl,
        )
        from src.service.commerce.driven_adapter.repo.order_command_repo_impl import (
            OrderCommandRepoImpl,
        )
        from src.service.commerce.driven_adapter.repo.order_query_repo_impl import (
            OrderQueryRepoImpl,
        )
        from src.service.commerce.driven_adapter.repo.user_query_repo_impl import (
            UserQueryRepoImpl,
        )

        self._session_cm = self._session_factory()
        session = await self._session_cm.__aenter__()
        self.session = session

        self.inventory_ledger = InventoryLedgerImpl(session=session)
        self.order_command_repo = OrderCommandRepoImpl(session=session)
        self.order_query_repo = OrderQueryRepoImpl(session=session)
        self.issued_ticket_repo = IssuedTicketRepoImpl(session=session)
        self.user_query_repo = UserQueryRepoImpl(session=session)

        await super().__aenter__()
        return self

    async def __aexit__(self, *args) -> None:
        try:
            await super().__aexit__(*args)
        finally:
            session_cm, self._session_cm, self.session = self._session_cm, None, None
            if session_cm is not None:
                await session_cm.__aexit__(*args)

    async def _commit(self) -> None:
        assert self.session is not None, 'UnitOfWork used outside of "async with"'
        await self.session.commit()

    async def rollback(self) -> None:
        if self.session is not None:
            await self.session.rollback()
