"""
Inventory Ledger Interface

Authoritative remaining quantities for sellable units. Every mutation is a
single conditional statement so concurrent checkouts serialize on the row.
"""

from abc import ABC, abstractmethod
from typing import Optional

from src.service.commerce.domain.entity.sellable_unit_entity import SellableUnit, UnitKind


class IInventoryLedger(ABC):
    @abstractmethod
    async def get_unit(self, *, kind: UnitKind, unit_id: int) -> Optional[SellableUnit]:
        """
        Read a unit snapshot (price, remaining quantity, owning artist)

        Returns:
            SellableUnit or None if the unit does not exist
        """
        pass

    @abstractmethod
    async def try_reserve(self, *, kind: UnitKind, unit_id: int, quantity: int) -> bool:
        """
        Atomically decrement remaining quantity if enough is left

        Returns:
            True when the decrement was applied, False when stock was insufficient
        """
        pass

    @abstractmethod
    async def release(self, *, kind: UnitKind, unit_id: int, quantity: int) -> None:
        """Give quantity back to the unit (cancellation / reservation expiry)"""
        pass

    @abstractmethod
    async def advance_issued_count(self, *, ticket_type_id: int, quantity: int) -> int:
        """
        Advance the ticket type's issued counter by quantity

        Returns:
            The counter value before this call (labels continue from value + 1)
        """
        pass
