"""
Reservation Expiry Scheduler

Background loop started in the application's task group. Each tick cancels
online orders left pending past the reservation TTL and releases their stock.
"""

from datetime import timedelta

import anyio

from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.logging.loguru_io import Logger
from src.service.commerce.app.command.release_expired_reservations_use_case import (
    ReleaseExpiredReservationsUseCase,
)


def build_use_case() -> ReleaseExpiredReservationsUseCase:
    return ReleaseExpiredReservationsUseCase(
        uow_factory=container.unit_of_work.provider,
        payment_gateway=container.payment_gateway(),
        status_sync_publisher=container.status_sync_publisher(),
        ttl=timedelta(minutes=settings.RESERVATION_TTL_MINUTES),
    )


async def run_reservation_sweeper(
    *, interval_seconds: float = settings.RESERVATION_SWEEP_INTERVAL_SECONDS
) -> None:
    """Runs until cancelled; a failed tick is logged and retried on the next one"""
    use_case = build_use_case()
    Logger.base.info(
        f'⏰ [SWEEPER] Started: ttl={settings.RESERVATION_TTL_MINUTES}m '
        f'interval={interval_seconds}s'
    )
    while True:
        try:
            await use_case.execute()
        except anyio.get_cancelled_exc_class():
            raise
        except Exception as e:
            Logger.base.exception(f'❌ [SWEEPER] Tick failed: {type(e).__name__}: {e}')
        await anyio.sleep(interval_seconds)
