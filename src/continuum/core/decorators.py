"""Error handling and Neo4j session decorators."""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

from .base import ApplicationError, ErrorLevel
from .error_context import ErrorContextManager
from .logging import get_logger

logger = get_logger(__name__)
P = ParamSpec("P")
T = TypeVar("T")


def _log_failure(func: Callable[..., Any], error: Exception, default_level: ErrorLevel) -> None:
    level = error.level if isinstance(error, ApplicationError) else default_level
    with ErrorContextManager(error) as ctx:
        logger.log(
            level.to_logging_level(),
            f"Error in {func.__qualname__}: {error!s}",
            function=func.__qualname__,
            error_context=ctx.to_dict(),
            exc_info=True,
        )


def with_error_handling(
    error_level: ErrorLevel = ErrorLevel.ERROR,
    reraise: bool = True,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """Log any exception escaping the decorated function.

    ApplicationErrors are logged at their own level; anything else at
    ``error_level``. With ``reraise=False`` the failure is swallowed and the
    function returns None, which is what scheduled jobs want.
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        if asyncio.iscoroutinefunction(func):

            @wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                try:
                    return await cast("Callable[P, Awaitable[T]]", func)(*args, **kwargs)
                except Exception as e:
                    _log_failure(func, e, error_level)
                    if reraise:
                        raise
                    return cast("T", None)

            wrapper: Callable[P, Any] = async_wrapper
        else:

            @wraps(func)
            def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    _log_failure(func, e, error_level)
                    if reraise:
                        raise
                    return cast("T", None)

            wrapper = sync_wrapper

        # FastAPI and the scheduler introspect the wrapped signature
        wrapper.__signature__ = inspect.signature(func)  # type: ignore[attr-defined]
        return cast("Callable[P, T]", wrapper)

    return decorator


def with_session(driver_attr: str = "driver") -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Open a Neo4j session from ``self.<driver_attr>`` and pass it after ``self``.

    Usage:
        @with_session()
        async def get(self, session, collection, doc_id): ...
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(self: Any, *args: Any, **kwargs: Any) -> T:
            driver = getattr(self, driver_attr, None)
            if driver is None:
                raise AttributeError(f"{type(self).__name__} has no Neo4j driver at '{driver_attr}'")
            async with driver.session() as session:
                return await func(self, session, *args, **kwargs)

        return wrapper

    return decorator
