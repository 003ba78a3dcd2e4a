"""
Unit tests for CheckoutUseCase

Repositories are AsyncMocks behind a fake unit of work, so each test pins
down the order of operations:
1. Address and request shape before the ledger is read
2. Payment intent before any write (fail closed)
3. Conditional reserve, limit check and order insert in one transaction
4. Intent cancellation when that transaction fails
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from src.platform.exception.exceptions import DomainError, ForbiddenError, NotFoundError
from src.service.commerce.app.command.checkout_use_case import CheckoutUseCase
from src.service.commerce.app.dto.payment_dto import PaymentIntentHandle
from src.service.commerce.app.service.ticket_issuance_service import TicketIssuanceService
from src.service.commerce.domain.commerce_errors import (
    InsufficientStockError,
    MissingShippingAddressError,
    PurchaseLimitExceededError,
    SalesClosedError,
    UpstreamTimeoutError,
)
from src.service.commerce.domain.entity.order_entity import (
    FulfillmentMethod,
    OrderStatus,
    PaymentMethod,
)
from src.service.commerce.domain.entity.sellable_unit_entity import (
    SeatingMode,
    SellableUnit,
    UnitKind,
)
from src.service.commerce.domain.entity.user_entity import UserEntity
from test.service.commerce.fakes import FakeUnitOfWork


@pytest.fixture
def buyer() -> UserEntity:
    return UserEntity(
        id=7,
        email='fan@example.com',
        name='hanako',
        postal_code='150-0001',
        prefecture='東京都',
        city='渋谷区',
        address_line1='神宮前1-2-3',
    )


@pytest.fixture
def product() -> SellableUnit:
    return SellableUnit(
        kind=UnitKind.MERCHANDISE, id=5, name='Tour T-shirt', price=1500, remaining=10, artist_id=1
    )


@pytest.fixture
def ticket_type() -> SellableUnit:
    return SellableUnit(
        kind=UnitKind.TICKET,
        id=3,
        name='S席',
        price=8000,
        remaining=100,
        artist_id=1,
        event_id=1,
        event_name='Spring Live',
        event_date=datetime.now(timezone.utc) + timedelta(days=30),
        seating_mode=SeatingMode.ASSIGNED,
    )


@pytest.fixture
def payment_gateway() -> AsyncMock:
    gateway = AsyncMock()
    gateway.open_intent.return_value = PaymentIntentHandle(
        intent_id='pi_unit_1', client_secret='pi_unit_1_secret'
    )
    return gateway


@pytest.fixture
def checkout_use_case(fake_uow: FakeUnitOfWork, payment_gateway: AsyncMock) -> CheckoutUseCase:
    return CheckoutUseCase(
        uow_factory=lambda: fake_uow,
        payment_gateway=payment_gateway,
        ticket_issuance_service=TicketIssuanceService(open_seating_label='自由席'),
        fee_percent=10,
        currency='jpy',
    )


@pytest.mark.unit
class TestCheckoutSuccess:
    async def test_cash_venue_merchandise(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        payment_gateway: AsyncMock,
        buyer: UserEntity,
        product: SellableUnit,
    ) -> None:
        # Arrange
        fake_uow.inventory_ledger.get_unit.return_value = product
        fake_uow.inventory_ledger.try_reserve.return_value = True

        # Act
        result = await checkout_use_case.execute(
            buyer=buyer,
            unit_kind=UnitKind.MERCHANDISE,
            unit_id=product.id,
            quantity=2,
            payment_method=PaymentMethod.CASH,
            fulfillment_method=FulfillmentMethod.VENUE,
        )

        # Assert - priced from the catalog, no processor involved
        order = result.order
        assert order.status == OrderStatus.PENDING
        assert order.total_price == 3000
        assert order.platform_fee == 300
        assert order.items[0].product_id == product.id
        assert order.redemption_token is not None
        assert result.client_secret is None
        assert result.tickets == []
        payment_gateway.open_intent.assert_not_awaited()

        # Assert - one committed transaction
        fake_uow.inventory_ledger.try_reserve.assert_awaited_once_with(
            kind=UnitKind.MERCHANDISE, unit_id=product.id, quantity=2
        )
        fake_uow.order_command_repo.create.assert_awaited_once_with(order=order)
        assert fake_uow.commits == 1

    async def test_online_mail_order_opens_intent_for_server_total(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        payment_gateway: AsyncMock,
        buyer: UserEntity,
        product: SellableUnit,
    ) -> None:
        fake_uow.inventory_ledger.get_unit.return_value = product
        fake_uow.inventory_ledger.try_reserve.return_value = True

        result = await checkout_use_case.execute(
            buyer=buyer,
            unit_kind=UnitKind.MERCHANDISE,
            unit_id=product.id,
            quantity=3,
            payment_method=PaymentMethod.ONLINE,
            fulfillment_method=FulfillmentMethod.MAIL,
        )

        call = payment_gateway.open_intent.await_args.kwargs
        assert call['amount'] == 4500
        assert call['currency'] == 'jpy'
        assert call['metadata']['order_id'] == str(result.order.id)
        assert call['metadata']['buyer_id'] == '7'
        assert call['idempotency_key'] == f'checkout-{result.order.id}'

        assert result.client_secret == 'pi_unit_1_secret'
        assert result.order.payment_reference == 'pi_unit_1'
        assert result.order.shipping_address is not None
        assert result.order.shipping_address.city == '渋谷区'
        # Mail orders are handed over by tracking number, not a pickup code
        assert result.order.redemption_token is None

    async def test_cash_ticket_purchase_issues_tickets_in_same_transaction(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        buyer: UserEntity,
        ticket_type: SellableUnit,
    ) -> None:
        fake_uow.inventory_ledger.get_unit.return_value = ticket_type
        fake_uow.inventory_ledger.try_reserve.return_value = True
        fake_uow.inventory_ledger.advance_issued_count.return_value = 4

        result = await checkout_use_case.execute(
            buyer=buyer,
            unit_kind=UnitKind.TICKET,
            unit_id=ticket_type.id,
            quantity=2,
            payment_method=PaymentMethod.CASH,
            fulfillment_method=FulfillmentMethod.VENUE,
        )

        assert [t.seat_label for t in result.tickets] == ['S席-5', 'S席-6']
        assert result.order.items[0].product_name == 'Spring Live S席'
        assert result.order.items[0].ticket_type_id == ticket_type.id
        # Ticket orders are redeemed per ticket
        assert result.order.redemption_token is None
        fake_uow.issued_ticket_repo.create_many.assert_awaited_once()
        assert fake_uow.commits == 1


@pytest.mark.unit
class TestCheckoutRejections:
    async def test_missing_address_fails_before_ledger_is_read(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        product: SellableUnit,
    ) -> None:
        homeless = UserEntity(id=8, email='nomad@example.com')

        with pytest.raises(MissingShippingAddressError):
            await checkout_use_case.execute(
                buyer=homeless,
                unit_kind=UnitKind.MERCHANDISE,
                unit_id=product.id,
                quantity=1,
                payment_method=PaymentMethod.CASH,
                fulfillment_method=FulfillmentMethod.MAIL,
            )

        fake_uow.inventory_ledger.get_unit.assert_not_awaited()
        fake_uow.inventory_ledger.try_reserve.assert_not_awaited()

    async def test_inactive_buyer(
        self, checkout_use_case: CheckoutUseCase, buyer: UserEntity
    ) -> None:
        buyer.is_active = False

        with pytest.raises(ForbiddenError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.MERCHANDISE,
                unit_id=5,
                quantity=1,
                payment_method=PaymentMethod.CASH,
                fulfillment_method=FulfillmentMethod.VENUE,
            )

    async def test_tickets_cannot_be_mailed(
        self, checkout_use_case: CheckoutUseCase, buyer: UserEntity
    ) -> None:
        with pytest.raises(DomainError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.TICKET,
                unit_id=3,
                quantity=1,
                payment_method=PaymentMethod.ONLINE,
                fulfillment_method=FulfillmentMethod.MAIL,
            )

    async def test_unknown_unit(
        self, checkout_use_case: CheckoutUseCase, fake_uow: FakeUnitOfWork, buyer: UserEntity
    ) -> None:
        fake_uow.inventory_ledger.get_unit.return_value = None

        with pytest.raises(NotFoundError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.MERCHANDISE,
                unit_id=404,
                quantity=1,
                payment_method=PaymentMethod.CASH,
                fulfillment_method=FulfillmentMethod.VENUE,
            )

    async def test_sales_closed_after_event_day(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        payment_gateway: AsyncMock,
        buyer: UserEntity,
        ticket_type: SellableUnit,
    ) -> None:
        ticket_type.event_date = datetime.now(timezone.utc) - timedelta(days=2)
        fake_uow.inventory_ledger.get_unit.return_value = ticket_type

        with pytest.raises(SalesClosedError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.TICKET,
                unit_id=ticket_type.id,
                quantity=1,
                payment_method=PaymentMethod.ONLINE,
                fulfillment_method=FulfillmentMethod.VENUE,
            )
        payment_gateway.open_intent.assert_not_awaited()

    async def test_snapshot_shortage_fails_fast(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        payment_gateway: AsyncMock,
        buyer: UserEntity,
        product: SellableUnit,
    ) -> None:
        product.remaining = 1
        fake_uow.inventory_ledger.get_unit.return_value = product

        with pytest.raises(InsufficientStockError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.MERCHANDISE,
                unit_id=product.id,
                quantity=2,
                payment_method=PaymentMethod.ONLINE,
                fulfillment_method=FulfillmentMethod.VENUE,
            )
        payment_gateway.open_intent.assert_not_awaited()
        fake_uow.inventory_ledger.try_reserve.assert_not_awaited()

    async def test_upstream_timeout_writes_nothing(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        payment_gateway: AsyncMock,
        buyer: UserEntity,
        product: SellableUnit,
    ) -> None:
        fake_uow.inventory_ledger.get_unit.return_value = product
        payment_gateway.open_intent.side_effect = UpstreamTimeoutError()

        with pytest.raises(UpstreamTimeoutError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.MERCHANDISE,
                unit_id=product.id,
                quantity=1,
                payment_method=PaymentMethod.ONLINE,
                fulfillment_method=FulfillmentMethod.VENUE,
            )

        fake_uow.inventory_ledger.try_reserve.assert_not_awaited()
        fake_uow.order_command_repo.create.assert_not_awaited()
        assert fake_uow.commits == 0


@pytest.mark.unit
class TestCheckoutRollback:
    async def test_lost_race_cancels_opened_intent(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        payment_gateway: AsyncMock,
        buyer: UserEntity,
        product: SellableUnit,
    ) -> None:
        # Arrange - the snapshot had stock, the conditional decrement did not
        fake_uow.inventory_ledger.get_unit.return_value = product
        fake_uow.inventory_ledger.try_reserve.return_value = False

        # Act
        with pytest.raises(InsufficientStockError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.MERCHANDISE,
                unit_id=product.id,
                quantity=1,
                payment_method=PaymentMethod.ONLINE,
                fulfillment_method=FulfillmentMethod.VENUE,
            )

        # Assert
        payment_gateway.cancel_intent.assert_awaited_once_with(intent_id='pi_unit_1')
        fake_uow.order_command_repo.create.assert_not_awaited()
        assert fake_uow.commits == 0
        assert fake_uow.rollbacks == 2

    async def test_purchase_limit_counts_earlier_orders(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        payment_gateway: AsyncMock,
        buyer: UserEntity,
        product: SellableUnit,
    ) -> None:
        product.limit_per_user = 2
        fake_uow.inventory_ledger.get_unit.return_value = product
        fake_uow.inventory_ledger.try_reserve.return_value = True
        fake_uow.order_query_repo.count_purchased_quantity.return_value = 1

        with pytest.raises(PurchaseLimitExceededError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.MERCHANDISE,
                unit_id=product.id,
                quantity=2,
                payment_method=PaymentMethod.ONLINE,
                fulfillment_method=FulfillmentMethod.VENUE,
            )

        fake_uow.order_query_repo.count_purchased_quantity.assert_awaited_once_with(
            buyer_id=buyer.id, product_id=product.id
        )
        payment_gateway.cancel_intent.assert_awaited_once_with(intent_id='pi_unit_1')
        assert fake_uow.commits == 0

    async def test_cancel_failure_does_not_mask_original_error(
        self,
        checkout_use_case: CheckoutUseCase,
        fake_uow: FakeUnitOfWork,
        payment_gateway: AsyncMock,
        buyer: UserEntity,
        product: SellableUnit,
    ) -> None:
        fake_uow.inventory_ledger.get_unit.return_value = product
        fake_uow.inventory_ledger.try_reserve.return_value = False
        payment_gateway.cancel_intent.side_effect = RuntimeError('processor down')

        with pytest.raises(InsufficientStockError):
            await checkout_use_case.execute(
                buyer=buyer,
                unit_kind=UnitKind.MERCHANDISE,
                unit_id=product.id,
                quantity=1,
                payment_method=PaymentMethod.ONLINE,
                fulfillment_method=FulfillmentMethod.VENUE,
            )
