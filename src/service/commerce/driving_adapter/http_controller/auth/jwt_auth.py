"""
Bearer credential verification

The identity provider issues HS256 JWTs; `sub` carries the user id, which is
resolved against the user table so role and active flag are always current.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import AuthenticationError
from src.service.commerce.domain.entity.user_entity import UserEntity


class JwtAuth:
    def __init__(self) -> None:
        self.secret = settings.SECRET_KEY.get_secret_value()
        self.algorithm = settings.ALGORITHM
        self.issuer = settings.JWT_ISSUER
        self.audience = settings.JWT_AUDIENCE
        self.token_expire_days = 7

    def create_jwt_token(self, user_entity: UserEntity) -> str:
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            'sub': str(user_entity.id),
            'exp': now + timedelta(days=self.token_expire_days),
            'iat': now,
            'role': user_entity.role,
        }
        if self.issuer:
            payload['iss'] = self.issuer
        if self.audience:
            payload['aud'] = self.audience

        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                audience=self.audience,
                options={'require': ['sub', 'exp']},
            )
        except jwt.PyJWTError as e:
            raise AuthenticationError('Invalid token') from e

    def get_user_id_from_jwt(self, token: Optional[str]) -> int:
        if not token:
            raise AuthenticationError('Not authenticated')

        payload = self.decode_jwt_token(token)
        try:
            return int(payload['sub'])
        except (TypeError, ValueError) as e:
            raise AuthenticationError('Invalid token') from e
