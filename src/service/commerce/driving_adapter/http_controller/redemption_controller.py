from fastapi import APIRouter, Depends
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.command.redeem_use_case import RedeemUseCase
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.driving_adapter.http_controller.auth.role_auth import require_redeemer
from src.service.commerce.driving_adapter.http_controller.schema.redemption_schema import (
    RedemptionRequest,
    RedemptionResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('')
@Logger.io
async def redeem(
    request: RedemptionRequest,
    current_user: UserEntity = Depends(require_redeemer),
    use_case: RedeemUseCase = Depends(RedeemUseCase.depends),
) -> RedemptionResponse:
    with tracer.start_as_current_span('controller.redeem') as span:
        span.set_attribute('mode', request.mode.value)
        span.set_attribute('actor_id', current_user.id)

        result = await use_case.execute(
            actor=current_user, token=request.token, mode=request.mode
        )
        return RedemptionResponse.from_result(result)
