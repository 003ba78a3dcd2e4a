from contextvars import ContextVar
from datetime import datetime, timezone
from enum import StrEnum
import logging
import os
import re
import sys
from typing import TYPE_CHECKING

from loguru import logger as loguru_logger


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.logging.service_context import get_service_context


LOG_DIR = os.environ.get('TEST_LOG_DIR', str(settings.LOG_DIR))

# Argument names whose values never reach the log sink
SENSITIVE_KEYWORDS = {
    'password',
    'token',
    'redemption_token',
    'client_secret',
    'signature',
    'signature_header',
    'payload',
    'authorization',
    'credentials',
    'shipping_address',
}
MASK = '********'
MAX_CONTENT_LENGTH = 1000

chain_start_time_var: ContextVar[float] = ContextVar('chain_start_time_var', default=0)
call_depth_var: ContextVar[int] = ContextVar('call_depth_var', default=0)


class ExtraField(StrEnum):
    SERVICE_CONTEXT = 'service_context'
    CHAIN_START_TIME = 'chain_start_time'
    CALL_TARGET = 'call_target'


def _bind_defaults() -> 'LoguruLogger':
    return loguru_logger.bind(
        **{
            ExtraField.SERVICE_CONTEXT: get_service_context(),
            ExtraField.CHAIN_START_TIME: '',
            ExtraField.CALL_TARGET: '',
        }
    )


# granian access line: 127.0.0.1 - "POST /api/checkout HTTP/1.1" - 201 - 12ms
_ACCESS_STATUS = re.compile(r'" - (\d{3}) - ')


def _access_log_level(message: str) -> str | None:
    match = _ACCESS_STATUS.search(message)
    if match is None:
        return None
    status_code = int(match.group(1))
    if status_code >= 500:
        return 'ERROR'
    if status_code >= 400:
        return 'WARNING'
    return 'SUCCESS' if status_code < 300 else 'INFO'


class InterceptHandler(logging.Handler):
    """Route stdlib logging (granian, sqlalchemy, stripe, httpx) into loguru"""

    def emit(self, record: logging.LogRecord) -> None:
        message = record.getMessage()

        if record.levelno <= logging.DEBUG and 'Using selector:' in message:
            return

        level: str | int | None = _access_log_level(message)
        if level is None:
            try:
                level = loguru_logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore
            depth += 1

        _intercept_logger.opt(depth=depth, exception=record.exc_info).log(level, message)


io_log_format = ' | '.join(
    (
        f'<c>{{extra[{ExtraField.SERVICE_CONTEXT}]}}</>',
        '<lvl>{level:<8}</>',
        f'<c>{{file}}::{{function}}:{{line}}</>=><y>{{extra[{ExtraField.CALL_TARGET}]}}</>',
        '{message}',
        '<lk>{elapsed}</>',
        f'<lk>{{extra[{ExtraField.CHAIN_START_TIME}]:<18}}</>',
    )
)


loguru_logger.remove()
custom_logger = _bind_defaults()
_intercept_logger = _bind_defaults()

min_log_level = 'DEBUG' if settings.DEBUG else 'INFO'

custom_logger.add(sys.stdout, format=io_log_format, level=min_log_level, enqueue=True)

# Production ships stdout only; local runs also keep hourly files
if settings.DEBUG:
    now = datetime.now(timezone.utc)
    prefix = 'test_' if os.environ.get('TEST_LOG_DIR') else ''
    custom_logger.add(
        f'{LOG_DIR}/{prefix}{now.strftime("%Y-%m-%d_%H")}.log',
        format=io_log_format,
        rotation='1 hour',
        retention='7 days',
        compression='gz',
        enqueue=True,
        level=min_log_level,
    )

logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
for _noisy in ('aiosqlite', 'asyncio', 'httpcore'):
    logging.getLogger(_noisy).setLevel(logging.INFO)
