"""
Production FastAPI Application

Commerce API with the Kvrocks status mirror and the reservation sweeper.

Run: granian src.main:app --interface asgi --host 0.0.0.0 --port 8000 --workers 4
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.orm_db_setting import engine_manager, get_engine
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.platform.state.kvrocks_client import kvrocks_client
from src.service.commerce.driving_adapter.scheduler.reservation_expiry_scheduler import (
    run_reservation_sweeper,
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Commerce API] Starting up...')

    tracing = TracingConfig(service_name='commerce-api')
    tracing.setup()
    Logger.base.info('📊 [Commerce API] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Commerce API] Dependency injection wired')

    engine = get_engine()
    tracing.instrument_sqlalchemy(engine=engine)
    Logger.base.info('🗄️  [Commerce API] Database engine ready + instrumented')

    tracing.instrument_redis()

    # Fail-fast at boot; individual mirror writes are best-effort
    await kvrocks_client.initialize()
    Logger.base.info('📡 [Commerce API] Kvrocks initialized')

    async with anyio.create_task_group() as tg:
        if settings.ENABLE_RESERVATION_SWEEPER:
            tg.start_soon(run_reservation_sweeper)
            Logger.base.info('⏰ [Commerce API] Reservation sweeper scheduled')

        Logger.base.info('✅ [Commerce API] Ready to serve requests')
        yield

        Logger.base.info('🛑 [Commerce API] Shutting down...')
        tg.cancel_scope.cancel()

    # Let in-flight mirror writes and emails finish
    await container.status_sync_publisher().drain()
    await container.order_notification_service().drain()

    await kvrocks_client.disconnect()
    Logger.base.info('📡 [Commerce API] Kvrocks disconnected')

    await engine_manager.dispose()
    Logger.base.info('🗄️  [Commerce API] Database engines disposed')

    tracing.shutdown()
    container.unwire()

    Logger.base.info('👋 [Commerce API] Shutdown complete')


app = create_app(
    lifespan=lifespan,
    description='Commerce Fulfillment Engine - checkout, payment confirmation, '
    'ticket issuance, redemption and real-time status',
)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
