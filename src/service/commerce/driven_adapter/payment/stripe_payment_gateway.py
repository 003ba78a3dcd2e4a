"""
Stripe Payment Gateway

PaymentIntent creation/cancellation and webhook signature verification.
The SDK is synchronous, so calls run on a worker thread with a bounded
HTTP timeout.
"""

from functools import partial
from typing import Any

import anyio
import orjson
import stripe

from src.platform.config.core_setting import settings
from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.dto.payment_dto import PaymentIntentHandle, PaymentNotification
from src.service.commerce.app.interface.i_payment_gateway import IPaymentGateway
from src.service.commerce.domain.commerce_errors import (
    InvalidSignatureError,
    UpstreamPaymentFailureError,
    UpstreamTimeoutError,
)


class StripePaymentGateway(IPaymentGateway):
    def __init__(
        self,
        *,
        api_key: str,
        webhook_secret: str,
        timeout_seconds: float = settings.PAYMENT_TIMEOUT_SECONDS,
        tolerance_seconds: int = settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
    ) -> None:
        self.api_key = api_key
        self.webhook_secret = webhook_secret
        self.tolerance_seconds = tolerance_seconds
        stripe.default_http_client = stripe.RequestsClient(timeout=timeout_seconds)
        stripe.max_network_retries = 0

    @Logger.io
    async def open_intent(
        self,
        *,
        amount: int,
        currency: str,
        metadata: dict[str, str],
        idempotency_key: str,
    ) -> PaymentIntentHandle:
        create = partial(
            stripe.PaymentIntent.create,
            api_key=self.api_key,
            amount=amount,
            currency=currency,
            metadata=metadata,
            automatic_payment_methods={'enabled': True},
            idempotency_key=idempotency_key,
        )
        try:
            intent = await anyio.to_thread.run_sync(create)
        except stripe.APIConnectionError as e:
            Logger.base.error(f'⏱️ [STRIPE] Intent creation unreachable: {e.user_message or e}')
            raise UpstreamTimeoutError() from e
        except stripe.StripeError as e:
            Logger.base.error(
                f'❌ [STRIPE] Intent creation rejected: {type(e).__name__}: {e.user_message or e}'
            )
            raise UpstreamPaymentFailureError() from e

        Logger.base.info(f'💳 [STRIPE] Opened intent {intent.id} amount={amount} {currency}')
        return PaymentIntentHandle(intent_id=intent.id, client_secret=intent.client_secret)

    @Logger.io
    async def cancel_intent(self, *, intent_id: str) -> None:
        cancel = partial(stripe.PaymentIntent.cancel, intent_id, api_key=self.api_key)
        try:
            await anyio.to_thread.run_sync(cancel)
        except stripe.StripeError as e:
            # Nothing was captured for a canceled order; a dangling intent expires on its own
            Logger.base.warning(f'⚠️ [STRIPE] Could not cancel intent {intent_id}: {e}')
            return
        Logger.base.info(f'🧹 [STRIPE] Canceled intent {intent_id}')

    def parse_notification(self, *, payload: bytes, signature_header: str) -> PaymentNotification:
        if not signature_header:
            raise InvalidSignatureError('Missing signature header')

        try:
            body = payload.decode('utf-8')
            stripe.WebhookSignature.verify_header(
                body, signature_header, self.webhook_secret, self.tolerance_seconds
            )
        except (stripe.SignatureVerificationError, UnicodeDecodeError) as e:
            Logger.base.warning(f'🚫 [WEBHOOK] Signature verification failed: {e}')
            raise InvalidSignatureError() from e

        try:
            event: dict[str, Any] = orjson.loads(body)
        except orjson.JSONDecodeError as e:
            raise InvalidSignatureError('Signed payload is not valid JSON') from e

        data_object = (event.get('data') or {}).get('object') or {}
        metadata = data_object.get('metadata') or {}
        return PaymentNotification(
            event_id=str(event.get('id', '')),
            event_type=str(event.get('type', '')),
            intent_id=data_object.get('id'),
            metadata={str(k): str(v) for k, v in metadata.items()},
        )
