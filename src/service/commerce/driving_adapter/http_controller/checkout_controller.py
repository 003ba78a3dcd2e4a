from fastapi import APIRouter, Depends, status
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.command.checkout_use_case import CheckoutUseCase
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.driving_adapter.http_controller.auth.role_auth import get_current_user
from src.service.commerce.driving_adapter.http_controller.schema.checkout_schema import (
    CheckoutRequest,
    CheckoutResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('', status_code=status.HTTP_201_CREATED)
@Logger.io
async def checkout(
    request: CheckoutRequest,
    current_user: UserEntity = Depends(get_current_user),
    use_case: CheckoutUseCase = Depends(CheckoutUseCase.depends),
) -> CheckoutResponse:
    with tracer.start_as_current_span('controller.checkout') as span:
        span.set_attribute('unit_kind', request.unit_kind.value)
        span.set_attribute('unit_id', request.unit_id)
        span.set_attribute('buyer_id', current_user.id)

        result = await use_case.execute(
            buyer=current_user,
            unit_kind=request.unit_kind,
            unit_id=request.unit_id,
            quantity=request.quantity,
            payment_method=request.payment_method,
            fulfillment_method=request.fulfillment_method,
        )

        span.set_attribute('order.id', str(result.order.id))
        return CheckoutResponse.from_result(result)
