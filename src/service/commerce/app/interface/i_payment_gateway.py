"""
Payment Gateway Interface

Port to the external payment processor: open/cancel payment intents and
authenticate asynchronous notifications.
"""

from abc import ABC, abstractmethod

from src.service.commerce.app.dto.payment_dto import PaymentIntentHandle, PaymentNotification


class IPaymentGateway(ABC):
    @abstractmethod
    async def open_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> PaymentIntentHandle:
        """
        Open a payment intent for a server-computed amount

        Raises:
            UpstreamTimeoutError: processor unreachable within the configured timeout
            UpstreamPaymentFailureError: processor rejected the request
        """
        pass

    @abstractmethod
    async def cancel_intent(self, *, intent_id: str) -> None:
        """Cancel an intent that will never be confirmed"""
        pass

    @abstractmethod
    def parse_notification(self, *, payload: bytes, signature_header: str) -> PaymentNotification:
        """
        Verify the signature, then decode the notification

        Raises:
            InvalidSignatureError: signature missing, stale or not matching the shared secret
        """
        pass
