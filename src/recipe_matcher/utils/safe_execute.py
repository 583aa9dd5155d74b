"""Log-and-degrade helpers for optional operations.

A recipe search never fails because one enrichment fetch or one parsing
attempt failed. These helpers run such an operation, log the failure with the
source it came from, and hand back a fallback value instead.
"""

import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from recipe_matcher.utils.logger import logger

T = TypeVar("T")

_LEVELS = {"debug": logging.DEBUG, "info": logging.INFO, "warning": logging.WARNING, "error": logging.ERROR}


def _log_failure(operation_name: str, exception: Exception, log_level: str, source: Optional[str]) -> None:
    level = _LEVELS.get(log_level, logging.WARNING)
    extra = {"source": source} if source else None
    logger.log(level, f"{operation_name} failed: {type(exception).__name__}: {exception}", extra=extra)


async def safe_execute_async(
    coro: Awaitable[T],
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
    reraise: bool = False,
    source: Optional[str] = None,
) -> Any:
    """Await an optional operation, returning default_return if it raises.

    Args:
        coro: Awaitable to run.
        operation_name: Description for logging (e.g., "Enrich recipe 123").
        log_level: "debug", "info", "warning" or "error". Default: "warning".
        default_return: Value returned when the operation fails.
        reraise: Log and re-raise instead of degrading.
        source: Recipe source the operation talks to, attached to the log record.

    Example:
        # Keep the basic search record if its detail fetch fails:
        info = await safe_execute_async(
            client.get_information(123), "Enrich recipe 123", default_return=None, source="spoonacular"
        )
    """
    try:
        return await coro
    except Exception as e:
        _log_failure(operation_name, e, log_level, source)
        if reraise:
            raise
        return default_return


def safe_execute_sync(
    func: Callable[[], T],
    operation_name: str,
    log_level: str = "warning",
    default_return: Any = None,
    reraise: bool = False,
    source: Optional[str] = None,
) -> Any:
    """Synchronous counterpart of safe_execute_async for zero-argument callables."""
    try:
        return func()
    except Exception as e:
        _log_failure(operation_name, e, log_level, source)
        if reraise:
            raise
        return default_return
