from typing import Callable, Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.database.unit_of_work import AbstractUnitOfWork
from src.platform.exception.exceptions import AuthenticationError, ForbiddenError
from src.service.commerce.domain.entity.user_entity import UserEntity, UserRole
from src.service.commerce.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


bearer_scheme = HTTPBearer(auto_error=False)


class RoleAuthStrategy:
    @staticmethod
    def can_redeem(user: UserEntity) -> bool:
        return user.role in (UserRole.ARTIST, UserRole.ADMIN)

    @staticmethod
    def can_administer_orders(user: UserEntity) -> bool:
        return user.role in (UserRole.ARTIST, UserRole.ADMIN)


@inject
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
    uow_factory: Callable[[], AbstractUnitOfWork] = Depends(
        Provide[Container.unit_of_work.provider]
    ),
) -> UserEntity:
    """Verify the bearer credential and load the user it names"""
    user_id = jwt_auth.get_user_id_from_jwt(credentials.credentials if credentials else None)

    async with uow_factory() as uow:
        user = await uow.user_query_repo.get_by_id(user_id=user_id)
    if user is None:
        raise AuthenticationError('Invalid token')
    user.validate_active()
    return user


async def require_redeemer(current_user: UserEntity = Depends(get_current_user)) -> UserEntity:
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        'auth.require_redeemer',
        attributes={'user.id': current_user.id, 'user.role': current_user.role.value},
    ):
        if not RoleAuthStrategy.can_redeem(current_user):
            raise ForbiddenError('Only artists and admins can redeem codes')
        return current_user


async def require_order_admin(
    current_user: UserEntity = Depends(get_current_user),
) -> UserEntity:
    if not RoleAuthStrategy.can_administer_orders(current_user):
        raise ForbiddenError("You don't have permission to perform this action")
    return current_user
