from fastapi import APIRouter, Depends, Header, Request

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.command.handle_payment_webhook_use_case import (
    HandlePaymentWebhookUseCase,
)


router = APIRouter()


@router.post('/webhook')
@Logger.io
async def receive_payment_webhook(
    request: Request,
    stripe_signature: str = Header(default='', alias='Stripe-Signature'),
    use_case: HandlePaymentWebhookUseCase = Depends(HandlePaymentWebhookUseCase.depends),
) -> dict[str, bool]:
    # The signature covers the exact bytes sent, so read the raw body
    payload = await request.body()
    await use_case.execute(payload=payload, signature_header=stripe_signature)
    return {'received': True}
