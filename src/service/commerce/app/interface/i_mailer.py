from abc import ABC, abstractmethod
from enum import StrEnum
from typing import Any


class MailTemplate(StrEnum):
    ORDER_CONFIRMATION = 'order_confirmation'
    SHIPPING_NOTIFICATION = 'shipping_notification'


class IMailer(ABC):
    @abstractmethod
    async def queue(self, *, template: MailTemplate, to: str, context: dict[str, Any]) -> None:
        """Render the template with the record context and queue it for delivery"""
        pass
