"""
Commerce error taxonomy.

Each error maps to an HTTP status through its base class and carries a stable
`code` so the mobile client can branch without parsing messages.
"""

from typing import Any

from src.platform.exception.exceptions import (
    ConflictError,
    DomainError,
    UnprocessableError,
    UpstreamError,
)


class InsufficientStockError(UnprocessableError):
    code = 'insufficient_stock'

    def __init__(self, message: str = 'Insufficient stock') -> None:
        super().__init__(message)


class MissingShippingAddressError(UnprocessableError):
    code = 'missing_shipping_address'

    def __init__(
        self, message: str = 'A complete shipping address is required for mail delivery'
    ) -> None:
        super().__init__(message)


class InvalidSignatureError(DomainError):
    code = 'invalid_signature'

    def __init__(self, message: str = 'Invalid webhook signature') -> None:
        super().__init__(message, 400)


class SalesClosedError(DomainError):
    code = 'sales_closed'

    def __init__(self, message: str = 'Ticket sales for this event have ended') -> None:
        super().__init__(message, 400)


class WrongRedemptionModeError(UnprocessableError):
    code = 'wrong_redemption_mode'

    def __init__(self, message: str, *, expected_mode: str) -> None:
        super().__init__(message)
        self.expected_mode = expected_mode

    @property
    def extra(self) -> dict[str, Any]:
        return {'expected_mode': self.expected_mode}


class AlreadyRedeemedError(ConflictError):
    code = 'already_redeemed'

    def __init__(self, message: str = 'This code has already been redeemed') -> None:
        super().__init__(message)


class PurchaseLimitExceededError(ConflictError):
    code = 'purchase_limit_exceeded'


class InvalidStateTransitionError(UnprocessableError):
    code = 'invalid_state_transition'


class UpstreamPaymentFailureError(UpstreamError):
    code = 'upstream_payment_failure'

    def __init__(self, message: str = 'Payment processor rejected the request') -> None:
        super().__init__(message, 502)


class UpstreamTimeoutError(UpstreamError):
    code = 'upstream_timeout'

    def __init__(self, message: str = 'Payment processor did not respond in time') -> None:
        super().__init__(message, 504)
