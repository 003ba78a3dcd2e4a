from typing import Any

from fastapi.testclient import TestClient
from pytest_bdd import when

from src.platform.constant.route_constant import REDEMPTION_REDEEM
from src.service.commerce.domain.entity.user_entity import UserEntity
from test.service.commerce.fixtures import auth_headers


def _scan(
    client: TestClient,
    redemption_state: dict[str, Any],
    *,
    actor: UserEntity,
    token: str,
    mode: str,
) -> None:
    redemption_state['response'] = client.post(
        REDEMPTION_REDEEM, json={'token': token, 'mode': mode}, headers=auth_headers(actor)
    )


@when('the artist scans the order code in merchandise mode')
def artist_scans_order_in_merchandise_mode(
    client: TestClient, redemption_state: dict[str, Any]
) -> None:
    _scan(
        client,
        redemption_state,
        actor=redemption_state['catalog'].artist,
        token=redemption_state['order']['redemption_token'],
        mode='merchandise',
    )


@when('the artist scans the order code in ticket mode')
def artist_scans_order_in_ticket_mode(
    client: TestClient, redemption_state: dict[str, Any]
) -> None:
    _scan(
        client,
        redemption_state,
        actor=redemption_state['catalog'].artist,
        token=redemption_state['order']['redemption_token'],
        mode='ticket',
    )


@when('the other artist scans the order code in merchandise mode')
def other_artist_scans_order(client: TestClient, redemption_state: dict[str, Any]) -> None:
    _scan(
        client,
        redemption_state,
        actor=redemption_state['catalog'].other_artist,
        token=redemption_state['order']['redemption_token'],
        mode='merchandise',
    )


@when('the artist scans the first ticket code in ticket mode')
def artist_scans_first_ticket(client: TestClient, redemption_state: dict[str, Any]) -> None:
    _scan(
        client,
        redemption_state,
        actor=redemption_state['catalog'].artist,
        token=redemption_state['tickets'][0]['redemption_token'],
        mode='ticket',
    )


@when('the artist scans the second ticket code in ticket mode')
def artist_scans_second_ticket(client: TestClient, redemption_state: dict[str, Any]) -> None:
    _scan(
        client,
        redemption_state,
        actor=redemption_state['catalog'].artist,
        token=redemption_state['tickets'][1]['redemption_token'],
        mode='ticket',
    )
