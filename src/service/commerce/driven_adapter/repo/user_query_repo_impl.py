from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.interface.i_user_query_repo import IUserQueryRepo
from src.service.commerce.domain.entity.user_entity import UserEntity, UserRole
from src.service.commerce.driven_adapter.model.user_model import UserModel
from src.service.commerce.driven_adapter.repo.repo_utils import as_utc


class UserQueryRepoImpl(IUserQueryRepo):
    def __init__(self, *, session: AsyncSession) -> None:
        self.session = session

    @Logger.io
    async def get_by_id(self, *, user_id: int) -> Optional[UserEntity]:
        user_model = await self.session.get(UserModel, user_id)
        if not user_model:
            return None
        return self._model_to_entity(user_model)

    def _model_to_entity(self, user_model: UserModel) -> UserEntity:
        return UserEntity(
            id=user_model.id,
            email=user_model.email,
            name=user_model.name,
            role=UserRole(user_model.role),
            is_active=user_model.is_active,
            real_name=user_model.real_name,
            phone_number=user_model.phone_number,
            postal_code=user_model.postal_code,
            prefecture=user_model.prefecture,
            city=user_model.city,
            address_line1=user_model.address_line1,
            address_line2=user_model.address_line2,
            created_at=as_utc(user_model.created_at),
        )
