from typing import List

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.query.list_my_tickets_use_case import ListMyTicketsUseCase
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.driving_adapter.http_controller.auth.role_auth import get_current_user
from src.service.commerce.driving_adapter.http_controller.schema.order_schema import (
    IssuedTicketResponse,
)


router = APIRouter()


@router.get('/my', response_model=List[IssuedTicketResponse])
@Logger.io
async def list_my_tickets(
    current_user: UserEntity = Depends(get_current_user),
    use_case: ListMyTicketsUseCase = Depends(ListMyTicketsUseCase.depends),
) -> List[IssuedTicketResponse]:
    tickets = await use_case.execute(owner_id=current_user.id)
    return [IssuedTicketResponse.from_entity(ticket) for ticket in tickets]
