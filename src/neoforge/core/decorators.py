"""Error handling decorators"""

import inspect
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, Protocol, TypeVar, cast

from .base import ApplicationError, ErrorLevel
from .error_context import ErrorContextManager
from .logging import get_logger

logger = get_logger(__name__)
P = ParamSpec("P")
T = TypeVar("T")


class ErrorHandlerProtocol(Protocol):
    """Protocol for error handlers"""

    async def handle_async(
        self,
        error: Exception,
        level: ErrorLevel,
        context: dict[str, Any],
    ) -> None: ...

    def handle_sync(
        self,
        error: Exception,
        level: ErrorLevel,
        context: dict[str, Any],
    ) -> None: ...


def _level_for(error: Exception, default: ErrorLevel) -> ErrorLevel:
    return error.level if isinstance(error, ApplicationError) else default


def with_error_handling(
    error_level: ErrorLevel = ErrorLevel.ERROR,
    reraise: bool = True,
    error_handler: ErrorHandlerProtocol | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Decorator for handling errors in functions.

    ApplicationErrors are logged at their own level, anything else at
    ``error_level``. Works for both plain and coroutine functions.

    Args:
        error_level: Severity level for non-application errors
        reraise: Whether to re-raise the error after handling
        error_handler: Optional custom error handler replacing the default log call

    Returns:
        Decorated function with error handling
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        original_signature = inspect.signature(func)

        if inspect.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                try:
                    return await cast("Callable[P, Awaitable[T]]", func)(*args, **kwargs)
                except Exception as e:
                    level = _level_for(e, error_level)
                    async with ErrorContextManager(e) as ctx:
                        error_context: dict[str, Any] = {
                            "function": func.__name__,
                            "error_context": ctx.to_dict(),
                        }
                        if error_handler:
                            await error_handler.handle_async(e, level, error_context)
                        else:
                            logger.log(
                                level.to_logging_level(),
                                f"Error in {func.__name__}: {e!s}",
                                **error_context,
                            )
                    if reraise:
                        raise
                    return cast("T", None)

            async_wrapper.__signature__ = original_signature  # type: ignore[attr-defined]
            return cast("Callable[P, T]", async_wrapper)

        @wraps(func)
        def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                level = _level_for(e, error_level)
                with ErrorContextManager(e) as ctx:
                    error_context: dict[str, Any] = {
                        "function": func.__name__,
                        "error_context": ctx.to_dict(),
                    }
                    if error_handler:
                        error_handler.handle_sync(e, level, error_context)
                    else:
                        logger.log(
                            level.to_logging_level(),
                            f"Error in {func.__name__}: {e!s}",
                            **error_context,
                        )
                if reraise:
                    raise
                return cast("T", None)

        sync_wrapper.__signature__ = original_signature  # type: ignore[attr-defined]
        return sync_wrapper

    return decorator
