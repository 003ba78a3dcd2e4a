"""
Commerce API app factory

Production (src/main.py) and the test app (test/test_main.py) share routes,
middleware and error handling; they differ only in lifespan.
"""

from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from typing import Any

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from sqlalchemy import text

from src.platform.config.core_setting import settings
from src.platform.constant import route_constant
from src.platform.database.orm_db_setting import get_engine
from src.platform.exception.exception_handlers import register_exception_handlers
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.commerce.driving_adapter.http_controller import (
    checkout_controller,
    order_controller,
    payment_webhook_controller,
    redemption_controller,
    status_controller,
    ticket_controller,
)


# (router, prefix, tag)
ROUTERS: tuple[tuple[APIRouter, str, str], ...] = (
    (checkout_controller.router, route_constant.CHECKOUT_BASE, 'checkout'),
    (payment_webhook_controller.router, route_constant.PAYMENT_BASE, 'payment'),
    (redemption_controller.router, route_constant.REDEMPTION_BASE, 'redemption'),
    (order_controller.router, route_constant.ORDER_BASE, 'order'),
    (ticket_controller.router, route_constant.TICKET_BASE, 'ticket'),
    (status_controller.router, route_constant.STATUS_BASE, 'status'),
)


def create_app(
    *,
    lifespan: Callable[[FastAPI], AbstractAsyncContextManager[Any]],
    title_suffix: str = '',
    description: str = 'Commerce Fulfillment Engine',
    service_name: str = 'commerce-api',
) -> FastAPI:
    """
    Args:
        lifespan: startup/shutdown of engines, Kvrocks and background tasks
        title_suffix: appended to the OpenAPI title, e.g. ' (Test)'
        service_name: OpenTelemetry service.name of the server spans
    """
    app = FastAPI(
        title=f'{settings.PROJECT_NAME}{title_suffix}',
        description=description,
        version=settings.VERSION,
        lifespan=lifespan,
    )

    # Instrument before routes are mounted
    TracingConfig(service_name=service_name).instrument_fastapi(app=app)

    app.add_middleware(
        CORSMiddleware,  # type: ignore
        allow_origins=settings.BACKEND_CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=['*'],
        allow_headers=['*'],
    )
    register_exception_handlers(app)

    for router, prefix, tag in ROUTERS:
        app.include_router(router, prefix=prefix, tags=[tag])

    _register_operational_endpoints(app)
    return app


def _register_operational_endpoints(app: FastAPI) -> None:
    @app.get(route_constant.HEALTH)
    async def health_check() -> JSONResponse:
        """Liveness plus a round trip to the relational store (the source of truth)"""
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text('SELECT 1'))
        except Exception as e:
            Logger.base.error(f'🩺 [HEALTH] Database unreachable: {type(e).__name__}: {e}')
            return JSONResponse(
                status_code=503,
                content={'status': 'unhealthy', 'service': settings.PROJECT_NAME},
            )
        return JSONResponse(content={'status': 'healthy', 'service': settings.PROJECT_NAME})

    @app.get(route_constant.METRICS)
    async def get_metrics() -> PlainTextResponse:
        return PlainTextResponse(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
