from typing import Any

from fastapi.testclient import TestClient

from src.platform.constant.route_constant import CHECKOUT_CREATE
from src.service.commerce.domain.entity.user_entity import UserEntity
from test.service.commerce.fixtures import auth_headers


def assert_response_status(response, expected_status: int, message: str | None = None):
    if response.status_code == expected_status:
        return
    # Streamed bodies (SSE) are only readable after read()
    response_text = response.read().decode(errors='replace')
    raise AssertionError(
        message or f'Expected {expected_status}, got {response.status_code}: {response_text}'
    )


def assert_error_code(response, expected_status: int, expected_code: str) -> dict[str, Any]:
    assert_response_status(response, expected_status)
    body = response.json()
    assert body['code'] == expected_code, f'Expected code {expected_code}, got {body}'
    return body


def checkout(
    client: TestClient,
    buyer: UserEntity,
    *,
    unit_kind: str,
    unit_id: int,
    quantity: int,
    payment_method: str,
    fulfillment_method: str,
    **extra: Any,
):
    return client.post(
        CHECKOUT_CREATE,
        json={
            'unit_kind': unit_kind,
            'unit_id': unit_id,
            'quantity': quantity,
            'payment_method': payment_method,
            'fulfillment_method': fulfillment_method,
            **extra,
        },
        headers=auth_headers(buyer),
    )
