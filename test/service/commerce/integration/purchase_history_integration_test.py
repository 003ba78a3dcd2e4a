"""Integration tests for order/ticket history and the authoritative status read"""

import pytest

from src.platform.exception.exceptions import NotFoundError
from src.service.commerce.app.command.checkout_use_case import CheckoutUseCase
from src.service.commerce.app.command.redeem_use_case import RedeemUseCase
from src.service.commerce.app.command.update_order_status_use_case import (
    UpdateOrderStatusUseCase,
)
from src.service.commerce.app.query.get_order_use_case import GetOrderUseCase
from src.service.commerce.app.query.list_my_orders_use_case import ListMyOrdersUseCase
from src.service.commerce.app.query.list_my_tickets_use_case import ListMyTicketsUseCase
from src.service.commerce.app.query.redemption_status_use_case import RedemptionStatusUseCase
from src.service.commerce.domain.entity.order_entity import (
    FulfillmentMethod,
    OrderStatus,
    PaymentMethod,
)
from src.service.commerce.domain.entity.sellable_unit_entity import UnitKind
from src.service.commerce.domain.entity.user_entity import UserEntity
from src.service.commerce.domain.value_object.redemption import RedemptionMode
from test.service.commerce.fixtures import SeededCatalog
from test.util_constant import ASSIGNED_TICKET_NAME


async def _buy(
    checkout_use_case: CheckoutUseCase,
    buyer: UserEntity,
    *,
    unit_kind: UnitKind,
    unit_id: int,
    quantity: int = 1,
):
    result = await checkout_use_case.execute(
        buyer=buyer,
        unit_kind=unit_kind,
        unit_id=unit_id,
        quantity=quantity,
        payment_method=PaymentMethod.CASH,
        fulfillment_method=FulfillmentMethod.VENUE,
    )
    return result.order


@pytest.mark.integration
class TestListMyOrders:
    async def test_newest_first_and_only_own_orders(
        self,
        checkout_use_case: CheckoutUseCase,
        list_my_orders_use_case: ListMyOrdersUseCase,
        catalog: SeededCatalog,
    ) -> None:
        first = await _buy(
            checkout_use_case,
            catalog.fan,
            unit_kind=UnitKind.MERCHANDISE,
            unit_id=catalog.product_id,
        )
        second = await _buy(
            checkout_use_case,
            catalog.fan,
            unit_kind=UnitKind.TICKET,
            unit_id=catalog.assigned_ticket_type_id,
        )
        await _buy(
            checkout_use_case,
            catalog.other_fan,
            unit_kind=UnitKind.MERCHANDISE,
            unit_id=catalog.product_id,
        )

        orders = await list_my_orders_use_case.execute(buyer_id=catalog.fan.id)

        assert [o.id for o in orders] == [second.id, first.id]
        assert all(o.buyer_id == catalog.fan.id for o in orders)
        assert all(len(o.items) == 1 for o in orders)

    async def test_buyer_without_orders(
        self,
        list_my_orders_use_case: ListMyOrdersUseCase,
        catalog: SeededCatalog,
    ) -> None:
        assert await list_my_orders_use_case.execute(buyer_id=catalog.other_fan.id) == []


@pytest.mark.integration
class TestGetOrder:
    async def test_buyer_seller_and_admin_can_view(
        self,
        checkout_use_case: CheckoutUseCase,
        get_order_use_case: GetOrderUseCase,
        catalog: SeededCatalog,
    ) -> None:
        order = await _buy(
            checkout_use_case,
            catalog.fan,
            unit_kind=UnitKind.TICKET,
            unit_id=catalog.assigned_ticket_type_id,
            quantity=2,
        )

        for viewer in (catalog.fan, catalog.artist, catalog.admin):
            detail = await get_order_use_case.execute(actor=viewer, order_id=order.id)
            assert detail.order.id == order.id
            assert [t.seat_label for t in detail.tickets] == [
                f'{ASSIGNED_TICKET_NAME}-1',
                f'{ASSIGNED_TICKET_NAME}-2',
            ]

    async def test_other_users_see_not_found(
        self,
        checkout_use_case: CheckoutUseCase,
        get_order_use_case: GetOrderUseCase,
        catalog: SeededCatalog,
    ) -> None:
        order = await _buy(
            checkout_use_case,
            catalog.fan,
            unit_kind=UnitKind.MERCHANDISE,
            unit_id=catalog.product_id,
        )

        for viewer in (catalog.other_fan, catalog.other_artist):
            with pytest.raises(NotFoundError):
                await get_order_use_case.execute(actor=viewer, order_id=order.id)


@pytest.mark.integration
class TestListMyTickets:
    async def test_lists_only_own_tickets(
        self,
        checkout_use_case: CheckoutUseCase,
        list_my_tickets_use_case: ListMyTicketsUseCase,
        catalog: SeededCatalog,
    ) -> None:
        mine = await _buy(
            checkout_use_case,
            catalog.fan,
            unit_kind=UnitKind.TICKET,
            unit_id=catalog.open_ticket_type_id,
            quantity=2,
        )
        await _buy(
            checkout_use_case,
            catalog.other_fan,
            unit_kind=UnitKind.TICKET,
            unit_id=catalog.open_ticket_type_id,
        )

        tickets = await list_my_tickets_use_case.execute(owner_id=catalog.fan.id)

        assert len(tickets) == 2
        assert {t.order_id for t in tickets} == {mine.id}
        assert all(t.owner_id == catalog.fan.id and not t.is_used for t in tickets)


@pytest.mark.integration
class TestRedemptionStatus:
    async def test_order_token_status_follows_the_order(
        self,
        checkout_use_case: CheckoutUseCase,
        redeem_use_case: RedeemUseCase,
        redemption_status_use_case: RedemptionStatusUseCase,
        catalog: SeededCatalog,
    ) -> None:
        order = await _buy(
            checkout_use_case,
            catalog.fan,
            unit_kind=UnitKind.MERCHANDISE,
            unit_id=catalog.product_id,
        )

        before = await redemption_status_use_case.get_status(
            actor=catalog.fan, token=order.redemption_token
        )
        assert before['status'] == 'pending'
        assert before['subject'] == 'order'
        assert before['actor_id'] is None

        await redeem_use_case.execute(
            actor=catalog.artist, token=order.redemption_token, mode=RedemptionMode.MERCHANDISE
        )
        after = await redemption_status_use_case.get_status(
            actor=catalog.fan, token=order.redemption_token
        )
        assert after['status'] == 'redeemed'
        assert after['actor_id'] == catalog.artist.id

    async def test_ticket_token_status(
        self,
        checkout_use_case: CheckoutUseCase,
        redeem_use_case: RedeemUseCase,
        update_order_status_use_case: UpdateOrderStatusUseCase,
        list_my_tickets_use_case: ListMyTicketsUseCase,
        redemption_status_use_case: RedemptionStatusUseCase,
        catalog: SeededCatalog,
    ) -> None:
        order = await _buy(
            checkout_use_case,
            catalog.fan,
            unit_kind=UnitKind.TICKET,
            unit_id=catalog.assigned_ticket_type_id,
            quantity=2,
        )
        first, second = sorted(
            await list_my_tickets_use_case.execute(owner_id=catalog.fan.id),
            key=lambda t: t.ordinal,
        )

        issued = await redemption_status_use_case.get_status(
            actor=catalog.fan, token=first.redemption_token
        )
        assert issued['status'] == 'issued'
        assert issued['subject'] == 'ticket'

        await redeem_use_case.execute(
            actor=catalog.artist, token=first.redemption_token, mode=RedemptionMode.TICKET
        )
        used = await redemption_status_use_case.get_status(
            actor=catalog.fan, token=first.redemption_token
        )
        assert used['status'] == 'used'
        assert used['actor_id'] == catalog.artist.id

        await update_order_status_use_case.transition(
            actor=catalog.admin, order_id=order.id, target=OrderStatus.CANCELED
        )
        void = await redemption_status_use_case.get_status(
            actor=catalog.fan, token=second.redemption_token
        )
        assert void['status'] == 'canceled'

    async def test_strangers_and_unknown_tokens_get_not_found(
        self,
        checkout_use_case: CheckoutUseCase,
        redemption_status_use_case: RedemptionStatusUseCase,
        catalog: SeededCatalog,
    ) -> None:
        order = await _buy(
            checkout_use_case,
            catalog.fan,
            unit_kind=UnitKind.MERCHANDISE,
            unit_id=catalog.product_id,
        )

        with pytest.raises(NotFoundError):
            await redemption_status_use_case.get_status(
                actor=catalog.other_fan, token=order.redemption_token
            )
        with pytest.raises(NotFoundError):
            await redemption_status_use_case.get_status(actor=catalog.fan, token='unknown')
