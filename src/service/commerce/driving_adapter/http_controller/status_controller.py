from collections.abc import AsyncIterator
from contextlib import aclosing

import anyio
from fastapi import APIRouter, Depends, status
import orjson
from sse_starlette.sse import EventSourceResponse

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.query.redemption_status_use_case import (
    FINAL_STATUSES,
    RedemptionStatusUseCase,
)
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.driving_adapter.http_controller.auth.role_auth import get_current_user
from src.service.commerce.driving_adapter.http_controller.schema.redemption_schema import (
    StatusDocumentResponse,
)


router = APIRouter()


@router.get('/{token}')
@Logger.io
async def get_redemption_status(
    token: str,
    current_user: UserEntity = Depends(get_current_user),
    use_case: RedemptionStatusUseCase = Depends(RedemptionStatusUseCase.depends),
) -> StatusDocumentResponse:
    """Authoritative status (polling fallback when the real-time channel is unavailable)"""
    document = await use_case.get_status(actor=current_user, token=token)
    return StatusDocumentResponse(**document)


# ============================ SSE Endpoint ============================


@router.get('/{token}/sse', status_code=status.HTTP_200_OK)
@Logger.io
async def stream_redemption_status(
    token: str,
    current_user: UserEntity = Depends(get_current_user),
    use_case: RedemptionStatusUseCase = Depends(RedemptionStatusUseCase.depends),
) -> EventSourceResponse:
    """
    SSE status updates for one redemption token

    Flow:
    1. Authorize before the response starts (unknown or foreign tokens get a 404)
    2. Subscribe to the status mirror channel, then send the authoritative status
    3. Follow the channel and close once the token reaches a final status
    """
    initial = await use_case.get_status(actor=current_user, token=token)
    Logger.base.info(f'📡 [SSE] Client {current_user.id} following a {initial["subject"]} token')

    async def event_generator() -> AsyncIterator[dict[str, str]]:
        try:
            async with aclosing(use_case.stream(actor=current_user, token=token)) as documents:
                async for document in documents:
                    yield {'event': 'status_update', 'data': orjson.dumps(document).decode()}

                    if document.get('status') in FINAL_STATUSES:
                        yield {
                            'event': 'close',
                            'data': orjson.dumps(
                                {'message': f'Reached final status: {document.get("status")}'}
                            ).decode(),
                        }
                        break

        except anyio.get_cancelled_exc_class():
            Logger.base.info(f'🔌 [SSE] Client disconnected: user={current_user.id}')
            raise

    return EventSourceResponse(event_generator())
