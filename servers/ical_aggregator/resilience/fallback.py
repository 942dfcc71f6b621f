"""Fail-soft execution for per-source work."""

import asyncio
from typing import Any, Callable, Coroutine, Optional, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


async def with_default(
    func: Callable[..., Coroutine[Any, Any, T]],
    default: T,
    *args: Any,
    exceptions: tuple[type[BaseException], ...] = (Exception,),
    timeout: Optional[float] = None,
    on_error: Optional[Callable[[BaseException], None]] = None,
    **kwargs: Any,
) -> T:
    """Execute function and return default value on failure.

    Cancellation of the caller is never converted into the default.

    Args:
        func: Async function to execute
        default: Value to return if function fails
        *args: Positional arguments for function
        exceptions: Exception types converted into the default
        timeout: Seconds before the call is abandoned and the default used
        on_error: Called with the exception before the default is returned
        **kwargs: Keyword arguments for function

    Returns:
        Function result or default value
    """
    try:
        if timeout is None:
            return await func(*args, **kwargs)
        return await asyncio.wait_for(func(*args, **kwargs), timeout)
    except asyncio.TimeoutError as e:
        error: BaseException = e
        message = f"timed out after {timeout}s"
    except exceptions as e:
        error = e
        message = str(e)

    logger.warning(
        "using_default_value",
        function=func.__name__,
        error=message,
    )
    if on_error is not None:
        on_error(error)
    return default
