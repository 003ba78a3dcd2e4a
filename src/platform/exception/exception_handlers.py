"""
HTTP error mapping

Every error body carries a machine-readable `code` next to the human `detail`,
so clients branch on `code` (e.g. insufficient_stock, already_redeemed) and
never on message text. Extra fields of an error (expected_mode) are merged in.
"""

from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.responses import Response

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger


ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


def _error_body(*, detail: Any, code: str, extra: dict[str, Any] | None = None) -> dict[str, Any]:
    return {'detail': detail, 'code': code, **(extra or {})}


async def commerce_error_handler(request: Request, exc: Exception) -> JSONResponse:
    if not isinstance(exc, CustomBaseError):
        return await unhandled_error_handler(request, exc)

    # @Logger.io already logged the business error; upstream failures are worth a second look
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        Logger.base.warning(
            f'🌩️ [HTTP] {exc.code} ({exc.status_code}) on {request.method} {request.url.path}'
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(
            detail=exc.message, code=exc.code, extra=getattr(exc, 'extra', None)
        ),
    )


async def bad_value_handler(request: Request, exc: Exception) -> JSONResponse:
    """Value objects raise ValueError on malformed input (fee percent, address fields)"""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(detail=str(exc), code='bad_request'),
    )


async def request_validation_handler(request: Request, exc: Exception) -> JSONResponse:
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(detail=errors, code='validation_error'),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    Logger.base.opt(exception=exc).error(
        f'💥 [HTTP] Unhandled {type(exc).__name__} on {request.method} {request.url.path}'
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(detail='Internal server error', code='internal_error'),
    )


def register_exception_handlers(app: FastAPI) -> None:
    handlers: dict[type[Exception], ExceptionHandler] = {
        CustomBaseError: commerce_error_handler,
        ValueError: bad_value_handler,
        RequestValidationError: request_validation_handler,
        Exception: unhandled_error_handler,
    }
    for exception_class, handler in handlers.items():
        app.add_exception_handler(exception_class, handler)
