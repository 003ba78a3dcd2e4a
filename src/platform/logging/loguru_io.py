"""
`Logger` facade over loguru

- `Logger.base`: the bound loguru logger for plain messages
- `@Logger.io`: logs arguments and return values at DEBUG (sensitive keys masked),
  and each exception once, however many decorated frames it passes through.
  Client-side business errors (4xx) log at WARNING, upstream and server errors
  at ERROR, anything outside the CustomBaseError hierarchy with its traceback.
"""

from collections.abc import Awaitable
from functools import wraps
from inspect import iscoroutinefunction, signature
import types
from typing import TYPE_CHECKING, Any, Callable, ParamSpec, TypeVar, cast, overload


if TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io_config import ExtraField, custom_logger
from src.platform.logging.loguru_io_utils import (
    build_call_target_func_path,
    enter_call,
    get_chain_start_time,
    mask_sensitive,
    reset_call_depth,
    truncate_content,
)


_F = TypeVar('_F', bound=Callable[..., Any])
_P = ParamSpec('_P')
_T = TypeVar('_T')

_LOGGED_MARK = '_logged_by_io'


class LoguruIO:
    def __init__(
        self, custom_logger: 'LoguruLogger', *, reraise: bool = True, truncate_content: bool = True
    ) -> None:
        self._custom_logger = custom_logger
        self.reraise = reraise
        self.truncate_content = truncate_content
        self._call_target = ''
        self._is_method = False

    def _logger_for_call(self) -> 'LoguruLogger':
        # Bound per call: concurrent requests through the same decorated function
        # must not share the chain start time
        return self._custom_logger.bind(
            **{
                ExtraField.CALL_TARGET: self._call_target,
                ExtraField.CHAIN_START_TIME: get_chain_start_time(),
            }
        ).opt(depth=2)

    def _render(self, data: Any) -> Any:
        masked = mask_sensitive(data)
        return truncate_content(masked) if self.truncate_content else masked

    def _on_enter(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> 'LoguruLogger':
        enter_call()
        log = self._logger_for_call()
        if settings.DEBUG:
            shown_args = args[1:] if self._is_method else args
            log.debug(f'args: {self._render(shown_args)}, kwargs: {self._render(kwargs)}')
        return log

    def _on_return(self, log: 'LoguruLogger', return_value: Any) -> None:
        if settings.DEBUG:
            log.debug(f'return: {self._render(return_value)}')

    def _on_error(self, log: 'LoguruLogger', e: Exception) -> None:
        if getattr(e, _LOGGED_MARK, False):
            return
        try:
            setattr(e, _LOGGED_MARK, True)
        except AttributeError:
            pass

        if not isinstance(e, CustomBaseError):
            log.exception(f'{type(e).__name__}: {e}')
        elif e.status_code >= 500:
            log.error(f'{type(e).__name__} [{e.code}]: {e}')
        else:
            log.warning(f'{type(e).__name__} [{e.code}]: {e}')

    def _hide_from_traceback(self, func: Callable[..., Any]) -> Callable[..., Any]:
        func.__code__ = func.__code__.replace(  # type: ignore[attr-defined]
            co_filename=cast(types.FunctionType, self._custom_logger.catch).__code__.co_filename
        )
        return func

    def __call__(self, func: _F) -> _F:
        self._call_target = build_call_target_func_path(func)
        parameters = list(signature(func).parameters)
        self._is_method = bool(parameters) and parameters[0] in ('self', 'cls')

        if iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                log = self._on_enter(args, kwargs)
                try:
                    return_value = await cast(Awaitable[Any], func(*args, **kwargs))
                except Exception as e:
                    self._on_error(log, e)
                    if self.reraise:
                        raise
                    return None
                finally:
                    reset_call_depth()
                self._on_return(log, return_value)
                return return_value

            return cast(_F, self._hide_from_traceback(async_wrapper))

        @wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            log = self._on_enter(args, kwargs)
            try:
                return_value = func(*args, **kwargs)
            except Exception as e:
                self._on_error(log, e)
                if self.reraise:
                    raise
                return None
            finally:
                reset_call_depth()
            self._on_return(log, return_value)
            return return_value

        return cast(_F, self._hide_from_traceback(sync_wrapper))


class Logger:
    base = custom_logger

    @overload
    @staticmethod
    def io(func: Callable[_P, _T]) -> Callable[_P, _T]: ...

    @overload
    @staticmethod
    def io(func: None = ..., *, reraise: bool = ..., truncate_content: bool = ...) -> LoguruIO: ...

    @staticmethod
    def io(
        func: Callable[_P, _T] | None = None, *, reraise: bool = True, truncate_content: bool = True
    ) -> Callable[_P, _T] | LoguruIO:
        decorator = LoguruIO(
            custom_logger=custom_logger, reraise=reraise, truncate_content=truncate_content
        )
        return decorator(func) if func else decorator
