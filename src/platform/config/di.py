"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.orm_db_setting import Database
from src.platform.database.unit_of_work import SqlAlchemyUnitOfWork
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.commerce.app.service.order_notification_service import OrderNotificationService
from src.service.commerce.app.service.status_sync_publisher import StatusSyncPublisher
from src.service.commerce.app.service.ticket_issuance_service import TicketIssuanceService
from src.service.commerce.driven_adapter.mail.logging_mailer import LoggingMailer
from src.service.commerce.driven_adapter.payment.stripe_payment_gateway import (
    StripePaymentGateway,
)
from src.service.commerce.driven_adapter.state.kvrocks_status_mirror_impl import (
    KvrocksStatusMirrorImpl,
)
from src.service.commerce.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (uses AsyncEngineManager, one engine per event loop)
    database = providers.Singleton(Database)

    # One UoW per use-case call: each call gets its own session and transaction
    unit_of_work = providers.Factory(
        SqlAlchemyUnitOfWork, session_factory=database.provided.session
    )

    # Payment processor
    payment_gateway = providers.Singleton(
        StripePaymentGateway,
        api_key=config_service.provided.STRIPE_SECRET_KEY.provided.get_secret_value.call(),
        webhook_secret=(
            config_service.provided.STRIPE_WEBHOOK_SECRET.provided.get_secret_value.call()
        ),
        timeout_seconds=config_service.provided.PAYMENT_TIMEOUT_SECONDS,
        tolerance_seconds=config_service.provided.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
    )

    # Kvrocks status mirror (client resolved lazily, after lifespan initialize())
    status_mirror = providers.Singleton(
        KvrocksStatusMirrorImpl,
        redis_client=providers.Factory(kvrocks_client.get_client),
        key_prefix=config_service.provided.KVROCKS_KEY_PREFIX,
        ttl_seconds=config_service.provided.STATUS_MIRROR_TTL_SECONDS,
    )
    status_sync_publisher = providers.Singleton(StatusSyncPublisher, status_mirror=status_mirror)

    # Email
    mailer = providers.Singleton(LoggingMailer)
    order_notification_service = providers.Singleton(OrderNotificationService, mailer=mailer)

    # Domain services
    ticket_issuance_service = providers.Singleton(
        TicketIssuanceService,
        open_seating_label=config_service.provided.OPEN_SEATING_LABEL,
    )

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)


container = Container()
