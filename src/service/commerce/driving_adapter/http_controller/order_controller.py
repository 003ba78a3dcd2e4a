from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.command.update_order_status_use_case import (
    UpdateOrderStatusUseCase,
)
from src.service.commerce.app.query.get_order_use_case import GetOrderUseCase
from src.service.commerce.app.query.list_my_orders_use_case import ListMyOrdersUseCase
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.driving_adapter.http_controller.auth.role_auth import (
    get_current_user,
    require_order_admin,
)
from src.service.commerce.driving_adapter.http_controller.schema.order_schema import (
    IssuedTicketResponse,
    OrderDetailResponse,
    OrderResponse,
    OrderTransitionRequest,
)


router = APIRouter()


@router.get('/my', response_model=List[OrderResponse])
@Logger.io
async def list_my_orders(
    current_user: UserEntity = Depends(get_current_user),
    use_case: ListMyOrdersUseCase = Depends(ListMyOrdersUseCase.depends),
) -> List[OrderResponse]:
    orders = await use_case.execute(buyer_id=current_user.id)
    return [OrderResponse.from_entity(order) for order in orders]


@router.get('/{order_id}')
@Logger.io
async def get_order(
    order_id: UUID,
    current_user: UserEntity = Depends(get_current_user),
    use_case: GetOrderUseCase = Depends(GetOrderUseCase.depends),
) -> OrderDetailResponse:
    detail = await use_case.execute(actor=current_user, order_id=order_id)
    return OrderDetailResponse(
        **OrderResponse.from_entity(detail.order).model_dump(),
        tickets=[IssuedTicketResponse.from_entity(ticket) for ticket in detail.tickets],
    )


@router.patch('/{order_id}/cancel', status_code=status.HTTP_200_OK)
@Logger.io
async def cancel_order(
    order_id: UUID,
    current_user: UserEntity = Depends(get_current_user),
    use_case: UpdateOrderStatusUseCase = Depends(UpdateOrderStatusUseCase.depends),
) -> OrderResponse:
    # Use case raises for ownership and status violations (Fail Fast)
    order = await use_case.cancel_by_buyer(buyer=current_user, order_id=order_id)
    return OrderResponse.from_entity(order)


@router.post('/{order_id}/transition')
@Logger.io
async def transition_order(
    order_id: UUID,
    request: OrderTransitionRequest,
    current_user: UserEntity = Depends(require_order_admin),
    use_case: UpdateOrderStatusUseCase = Depends(UpdateOrderStatusUseCase.depends),
) -> OrderResponse:
    order = await use_case.transition(
        actor=current_user,
        order_id=order_id,
        target=request.status,
        tracking_number=request.tracking_number,
    )
    return OrderResponse.from_entity(order)
