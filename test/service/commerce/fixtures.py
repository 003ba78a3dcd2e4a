"""
Commerce service fixtures

- `catalog`: users, events, ticket types and products seeded into a clean database
- `db_reader`: synchronous reads/writes against the same database for assertions
- Use case fixtures wired to the real repositories and the in-memory edges
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional
from uuid import UUID

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import AbstractUnitOfWork, SqlAlchemyUnitOfWork
from src.service.commerce.app.command.checkout_use_case import CheckoutUseCase
from src.service.commerce.app.command.handle_payment_webhook_use_case import (
    HandlePaymentWebhookUseCase,
    WebhookOutcome,
)
from src.service.commerce.app.command.redeem_use_case import RedeemUseCase
from src.service.commerce.app.command.release_expired_reservations_use_case import (
    ReleaseExpiredReservationsUseCase,
)
from src.service.commerce.app.command.update_order_status_use_case import (
    UpdateOrderStatusUseCase,
)
from src.service.commerce.app.query.get_order_use_case import GetOrderUseCase
from src.service.commerce.app.query.list_my_orders_use_case import ListMyOrdersUseCase
from src.service.commerce.app.query.list_my_tickets_use_case import ListMyTicketsUseCase
from src.service.commerce.app.query.redemption_status_use_case import RedemptionStatusUseCase
from src.service.commerce.app.service.order_notification_service import OrderNotificationService
from src.service.commerce.app.service.status_sync_publisher import StatusSyncPublisher
from src.service.commerce.app.service.ticket_issuance_service import TicketIssuanceService
from src.service.commerce.domain.entity.user_entity import UserEntity, UserRole
from src.service.commerce.driven_adapter.mail.logging_mailer import LoggingMailer
from src.service.commerce.driven_adapter.model import (
    EventModel,
    IssuedTicketModel,
    OrderModel,
    ProductModel,
    TicketTypeModel,
    UserModel,
)
from src.service.commerce.driving_adapter.http_controller.auth.jwt_auth import JwtAuth
from test.service.commerce.fakes import (
    FakeStripeGateway,
    InMemoryStatusMirror,
    sign_stripe_payload,
    stripe_event_payload,
)
from test.sqlite_test_database import get_sync_engine
from test.util_constant import (
    ADMIN_EMAIL,
    ARTIST_EMAIL,
    ASSIGNED_TICKET_CAPACITY,
    ASSIGNED_TICKET_NAME,
    ASSIGNED_TICKET_PRICE,
    EVENT_NAME,
    FAN_EMAIL,
    LIMITED_PRODUCT_LIMIT,
    LIMITED_PRODUCT_NAME,
    LIMITED_PRODUCT_PRICE,
    NO_ADDRESS_FAN_EMAIL,
    OPEN_SEATING_LABEL,
    OPEN_TICKET_CAPACITY,
    OPEN_TICKET_NAME,
    OPEN_TICKET_PRICE,
    OTHER_ARTIST_EMAIL,
    OTHER_FAN_EMAIL,
    PRODUCT_NAME,
    PRODUCT_PRICE,
    PRODUCT_STOCK,
    SCARCE_PRODUCT_NAME,
    SCARCE_PRODUCT_PRICE,
    TEST_FEE_PERCENT,
)


# =============================================================================
# Catalog seeding
# =============================================================================
@dataclass
class SeededCatalog:
    artist: UserEntity
    other_artist: UserEntity
    fan: UserEntity
    other_fan: UserEntity
    fan_without_address: UserEntity
    admin: UserEntity
    event_id: int
    past_event_id: int
    assigned_ticket_type_id: int
    open_ticket_type_id: int
    past_ticket_type_id: int
    product_id: int
    limited_product_id: int
    scarce_product_id: int


_ADDRESS = {
    'real_name': '山田 花子',
    'phone_number': '090-1234-5678',
    'postal_code': '150-0001',
    'prefecture': '東京都',
    'city': '渋谷区',
    'address_line1': '神宮前1-2-3',
    'address_line2': 'ハイツ101',
}


def _add_user(
    session: Session, *, email: str, name: str, role: UserRole, with_address: bool = False
) -> UserEntity:
    address = _ADDRESS if with_address else {}
    model = UserModel(email=email, name=name, role=role.value, is_active=True, **address)
    session.add(model)
    session.flush()
    return UserEntity(id=model.id, email=email, name=name, role=role, **address)


def seed_catalog() -> SeededCatalog:
    now = datetime.now(timezone.utc)
    with Session(get_sync_engine()) as session:
        artist = _add_user(session, email=ARTIST_EMAIL, name='Artist', role=UserRole.ARTIST)
        other_artist = _add_user(
            session, email=OTHER_ARTIST_EMAIL, name='Other Artist', role=UserRole.ARTIST
        )
        fan = _add_user(
            session, email=FAN_EMAIL, name='Fan', role=UserRole.FAN, with_address=True
        )
        other_fan = _add_user(
            session, email=OTHER_FAN_EMAIL, name='Other Fan', role=UserRole.FAN, with_address=True
        )
        fan_without_address = _add_user(
            session, email=NO_ADDRESS_FAN_EMAIL, name='No Address Fan', role=UserRole.FAN
        )
        admin = _add_user(session, email=ADMIN_EMAIL, name='Admin', role=UserRole.ADMIN)

        event = EventModel(
            artist_id=artist.id,
            name=EVENT_NAME,
            venue_name='Zepp Tokyo',
            event_date=now + timedelta(days=30),
        )
        past_event = EventModel(
            artist_id=artist.id,
            name='Last Year Live',
            venue_name='Zepp Tokyo',
            event_date=now - timedelta(days=2),
        )
        session.add_all([event, past_event])
        session.flush()

        assigned = TicketTypeModel(
            event_id=event.id,
            name=ASSIGNED_TICKET_NAME,
            price=ASSIGNED_TICKET_PRICE,
            capacity=ASSIGNED_TICKET_CAPACITY,
            seating_mode='assigned',
            issued_count=0,
        )
        open_seating = TicketTypeModel(
            event_id=event.id,
            name=OPEN_TICKET_NAME,
            price=OPEN_TICKET_PRICE,
            capacity=OPEN_TICKET_CAPACITY,
            seating_mode='open',
            issued_count=0,
        )
        past = TicketTypeModel(
            event_id=past_event.id,
            name=ASSIGNED_TICKET_NAME,
            price=ASSIGNED_TICKET_PRICE,
            capacity=ASSIGNED_TICKET_CAPACITY,
            seating_mode='assigned',
            issued_count=0,
        )
        product = ProductModel(
            artist_id=artist.id, name=PRODUCT_NAME, price=PRODUCT_PRICE, stock=PRODUCT_STOCK
        )
        limited = ProductModel(
            artist_id=artist.id,
            name=LIMITED_PRODUCT_NAME,
            price=LIMITED_PRODUCT_PRICE,
            stock=PRODUCT_STOCK,
            limit_per_user=LIMITED_PRODUCT_LIMIT,
        )
        scarce = ProductModel(
            artist_id=artist.id, name=SCARCE_PRODUCT_NAME, price=SCARCE_PRODUCT_PRICE, stock=1
        )
        session.add_all([assigned, open_seating, past, product, limited, scarce])
        session.flush()

        catalog = SeededCatalog(
            artist=artist,
            other_artist=other_artist,
            fan=fan,
            other_fan=other_fan,
            fan_without_address=fan_without_address,
            admin=admin,
            event_id=event.id,
            past_event_id=past_event.id,
            assigned_ticket_type_id=assigned.id,
            open_ticket_type_id=open_seating.id,
            past_ticket_type_id=past.id,
            product_id=product.id,
            limited_product_id=limited.id,
            scarce_product_id=scarce.id,
        )
        session.commit()
    return catalog


@pytest.fixture
def catalog(clean_database: None) -> SeededCatalog:
    return seed_catalog()


# =============================================================================
# Database reader
# =============================================================================
class DbReader:
    """Reads the committed state; every call opens its own short session"""

    def product_stock(self, product_id: int) -> int:
        with Session(get_sync_engine()) as session:
            return session.scalar(select(ProductModel.stock).where(ProductModel.id == product_id))

    def ticket_capacity(self, ticket_type_id: int) -> int:
        with Session(get_sync_engine()) as session:
            return session.scalar(
                select(TicketTypeModel.capacity).where(TicketTypeModel.id == ticket_type_id)
            )

    def issued_count(self, ticket_type_id: int) -> int:
        with Session(get_sync_engine()) as session:
            return session.scalar(
                select(TicketTypeModel.issued_count).where(TicketTypeModel.id == ticket_type_id)
            )

    def order(self, order_id: UUID) -> Optional[OrderModel]:
        with Session(get_sync_engine(), expire_on_commit=False) as session:
            model = session.get(OrderModel, order_id)
            if model is not None:
                session.expunge(model)
            return model

    def order_status(self, order_id: UUID) -> Optional[str]:
        model = self.order(order_id)
        return model.status if model else None

    def order_count(self) -> int:
        with Session(get_sync_engine()) as session:
            return session.scalar(select(func.count()).select_from(OrderModel)) or 0

    def tickets_for(self, order_id: UUID) -> list[IssuedTicketModel]:
        with Session(get_sync_engine()) as session:
            tickets = list(
                session.scalars(
                    select(IssuedTicketModel)
                    .where(IssuedTicketModel.order_id == order_id)
                    .order_by(IssuedTicketModel.ordinal)
                )
            )
            session.expunge_all()
            return tickets

    def set_product_price(self, product_id: int, price: int) -> None:
        with Session(get_sync_engine()) as session:
            session.execute(
                update(ProductModel).where(ProductModel.id == product_id).values(price=price)
            )
            session.commit()

    def deactivate_user(self, user_id: int) -> None:
        with Session(get_sync_engine()) as session:
            session.execute(
                update(UserModel).where(UserModel.id == user_id).values(is_active=False)
            )
            session.commit()


@pytest.fixture
def db_reader() -> DbReader:
    return DbReader()


# =============================================================================
# Edges and services
# =============================================================================
@pytest.fixture
def uow_factory() -> Callable[[], AbstractUnitOfWork]:
    database = Database()
    return lambda: SqlAlchemyUnitOfWork(session_factory=database.session)


@pytest.fixture
def fake_gateway() -> FakeStripeGateway:
    return FakeStripeGateway()


@pytest.fixture
def status_mirror() -> InMemoryStatusMirror:
    return InMemoryStatusMirror()


@pytest.fixture
def status_sync_publisher(status_mirror: InMemoryStatusMirror) -> StatusSyncPublisher:
    return StatusSyncPublisher(status_mirror=status_mirror)


@pytest.fixture
def mailer() -> LoggingMailer:
    return LoggingMailer()


@pytest.fixture
def order_notification_service(mailer: LoggingMailer) -> OrderNotificationService:
    return OrderNotificationService(mailer=mailer)


@pytest.fixture
def ticket_issuance_service() -> TicketIssuanceService:
    return TicketIssuanceService(open_seating_label=OPEN_SEATING_LABEL)


# =============================================================================
# Use cases
# =============================================================================
@pytest.fixture
def checkout_use_case(
    uow_factory: Callable[[], AbstractUnitOfWork],
    fake_gateway: FakeStripeGateway,
    ticket_issuance_service: TicketIssuanceService,
) -> CheckoutUseCase:
    return CheckoutUseCase(
        uow_factory=uow_factory,
        payment_gateway=fake_gateway,
        ticket_issuance_service=ticket_issuance_service,
        fee_percent=TEST_FEE_PERCENT,
        currency='jpy',
    )


@pytest.fixture
def webhook_use_case(
    uow_factory: Callable[[], AbstractUnitOfWork],
    fake_gateway: FakeStripeGateway,
    ticket_issuance_service: TicketIssuanceService,
    status_sync_publisher: StatusSyncPublisher,
    order_notification_service: OrderNotificationService,
) -> HandlePaymentWebhookUseCase:
    return HandlePaymentWebhookUseCase(
        uow_factory=uow_factory,
        payment_gateway=fake_gateway,
        ticket_issuance_service=ticket_issuance_service,
        status_sync_publisher=status_sync_publisher,
        order_notification_service=order_notification_service,
    )


@pytest.fixture
def redeem_use_case(
    uow_factory: Callable[[], AbstractUnitOfWork],
    status_sync_publisher: StatusSyncPublisher,
) -> RedeemUseCase:
    return RedeemUseCase(uow_factory=uow_factory, status_sync_publisher=status_sync_publisher)


@pytest.fixture
def update_order_status_use_case(
    uow_factory: Callable[[], AbstractUnitOfWork],
    fake_gateway: FakeStripeGateway,
    status_sync_publisher: StatusSyncPublisher,
    order_notification_service: OrderNotificationService,
) -> UpdateOrderStatusUseCase:
    return UpdateOrderStatusUseCase(
        uow_factory=uow_factory,
        payment_gateway=fake_gateway,
        status_sync_publisher=status_sync_publisher,
        order_notification_service=order_notification_service,
    )


@pytest.fixture
def release_expired_reservations_use_case(
    uow_factory: Callable[[], AbstractUnitOfWork],
    fake_gateway: FakeStripeGateway,
    status_sync_publisher: StatusSyncPublisher,
) -> ReleaseExpiredReservationsUseCase:
    return ReleaseExpiredReservationsUseCase(
        uow_factory=uow_factory,
        payment_gateway=fake_gateway,
        status_sync_publisher=status_sync_publisher,
        ttl=timedelta(minutes=30),
        batch_size=100,
    )


@pytest.fixture
def get_order_use_case(uow_factory: Callable[[], AbstractUnitOfWork]) -> GetOrderUseCase:
    return GetOrderUseCase(uow_factory=uow_factory)


@pytest.fixture
def list_my_orders_use_case(
    uow_factory: Callable[[], AbstractUnitOfWork],
) -> ListMyOrdersUseCase:
    return ListMyOrdersUseCase(uow_factory=uow_factory)


@pytest.fixture
def list_my_tickets_use_case(
    uow_factory: Callable[[], AbstractUnitOfWork],
) -> ListMyTicketsUseCase:
    return ListMyTicketsUseCase(uow_factory=uow_factory)


@pytest.fixture
def redemption_status_use_case(
    uow_factory: Callable[[], AbstractUnitOfWork],
    status_mirror: InMemoryStatusMirror,
) -> RedemptionStatusUseCase:
    return RedemptionStatusUseCase(uow_factory=uow_factory, status_mirror=status_mirror)


@pytest.fixture
def redemption_state() -> dict[str, Any]:
    """Shared state between redemption BDD steps"""
    return {}


# =============================================================================
# Helpers
# =============================================================================
def auth_headers(user: UserEntity) -> dict[str, str]:
    return {'Authorization': f'Bearer {JwtAuth().create_jwt_token(user)}'}


def signed_payment_event(
    *,
    event_type: str,
    intent_id: Optional[str],
    order_id: Optional[UUID | str],
    event_id: str = 'evt_test_1',
) -> tuple[bytes, str]:
    payload = stripe_event_payload(
        event_type=event_type,
        intent_id=intent_id,
        metadata={'order_id': str(order_id)} if order_id else {},
        event_id=event_id,
    )
    return payload, sign_stripe_payload(payload)


async def deliver_payment_event(
    webhook_use_case: HandlePaymentWebhookUseCase,
    *,
    event_type: str,
    intent_id: Optional[str],
    order_id: Optional[UUID | str],
    event_id: str = 'evt_test_1',
) -> WebhookOutcome:
    payload, header = signed_payment_event(
        event_type=event_type, intent_id=intent_id, order_id=order_id, event_id=event_id
    )
    return await webhook_use_case.execute(payload=payload, signature_header=header)

