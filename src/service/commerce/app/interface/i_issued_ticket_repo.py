from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.service.commerce.domain.entity.issued_ticket_entity import IssuedTicket


class IIssuedTicketRepo(ABC):
    @abstractmethod
    async def create_many(self, *, tickets: List[IssuedTicket]) -> List[IssuedTicket]:
        """Insert tickets; unique (order, ordinal) / (payment reference, ordinal) reject replays"""
        pass

    @abstractmethod
    async def get_by_redemption_token(self, *, token: str) -> Optional[IssuedTicket]:
        pass

    @abstractmethod
    async def list_by_order(self, *, order_id: UUID) -> List[IssuedTicket]:
        pass

    @abstractmethod
    async def list_by_owner(self, *, owner_id: int) -> List[IssuedTicket]:
        pass

    @abstractmethod
    async def mark_used_if_unused(self, *, ticket_id: UUID, actor_id: int, at: datetime) -> bool:
        """
        Flip is_used in one conditional statement

        Returns:
            True if this call used the ticket, False if it was already used
        """
        pass

    @abstractmethod
    async def count_unused(self, *, order_id: UUID) -> int:
        pass
