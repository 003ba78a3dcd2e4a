import jwt
import pytest

from src.platform.exception.exceptions import AuthenticationError
from src.service.commerce.domain.entity.user_entity import UserEntity, UserRole
from src.service.commerce.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


@pytest.mark.unit
class TestJwtAuth:
    def test_round_trip_carries_user_id_and_role(self) -> None:
        auth = JwtAuth()
        token = auth.create_jwt_token(UserEntity(id=42, role=UserRole.ARTIST))

        payload = auth.decode_jwt_token(token)

        assert payload['sub'] == '42'
        assert payload['role'] == 'artist'
        assert auth.get_user_id_from_jwt(token) == 42

    def test_missing_token(self) -> None:
        with pytest.raises(AuthenticationError) as exc_info:
            JwtAuth().get_user_id_from_jwt(None)
        assert exc_info.value.status_code == 401

    def test_token_signed_with_another_secret(self) -> None:
        forged = jwt.encode({'sub': '1', 'exp': 9999999999}, 'another-secret-of-32-bytes-or-more')

        with pytest.raises(AuthenticationError):
            JwtAuth().get_user_id_from_jwt(forged)

    def test_expired_token(self) -> None:
        auth = JwtAuth()
        auth.token_expire_days = -1
        token = auth.create_jwt_token(UserEntity(id=1))

        with pytest.raises(AuthenticationError):
            JwtAuth().get_user_id_from_jwt(token)

    def test_non_numeric_subject(self) -> None:
        auth = JwtAuth()
        token = jwt.encode({'sub': 'abc', 'exp': 9999999999}, auth.secret, algorithm=auth.algorithm)

        with pytest.raises(AuthenticationError):
            auth.get_user_id_from_jwt(token)
