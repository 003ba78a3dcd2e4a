from abc import ABC, abstractmethod
from collections.abc import AsyncGenerator
from contextlib import AbstractAsyncContextManager
from typing import Any, Optional

from src.service.commerce.domain.value_object.status_document import StatusDocument


class IStatusMirror(ABC):
    """Real-time, non-authoritative status channel read by mobile clients"""

    @abstractmethod
    async def write(self, *, document: StatusDocument) -> None:
        """Store the document under its token and notify subscribers"""
        pass

    @abstractmethod
    async def read(self, *, token: str) -> Optional[dict[str, Any]]:
        pass

    @abstractmethod
    def subscribe(
        self, *, token: str
    ) -> AbstractAsyncContextManager[AsyncGenerator[dict[str, Any], None]]:
        """
        Subscription to the token's channel

        Entering returns once the subscription is live: every document written
        after that point reaches the yielded generator. Exiting unsubscribes.
        """
        pass
