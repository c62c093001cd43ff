"""General utility functions."""

import asyncio
from functools import wraps
from typing import Any, Callable, Optional, TypeVar

from shared.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def retry_async(
    max_attempts: int = 3, delay: float = 1.0, backoff: float = 2.0, exceptions: tuple = (Exception,)
) -> Callable:
    """
    Decorator for retrying async functions with exponential backoff.

    Args:
        max_attempts: Maximum number of retry attempts
        delay: Initial delay between retries in seconds
        backoff: Backoff multiplier for delay
        exceptions: Tuple of exceptions to catch and retry

    Returns:
        Decorated async function
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            current_delay = delay
            last_exception: Optional[Exception] = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt < max_attempts - 1:
                        logger.warning(
                            "retry_attempt",
                            function=func.__name__,
                            attempt=attempt + 1,
                            max_attempts=max_attempts,
                            error=str(e),
                            delay=current_delay,
                        )
                        await asyncio.sleep(current_delay)
                        current_delay *= backoff
                    else:
                        logger.error(
                            "retry_exhausted",
                            function=func.__name__,
                            attempts=max_attempts,
                            error=str(e),
                        )

            if last_exception:
                raise last_exception
            raise RuntimeError(f"Retry failed for {func.__name__}")

        return wrapper

    return decorator


def truncate(text: str, limit: int = 200) -> str:
    """
    Shorten text for log output.

    Args:
        text: Text to shorten
        limit: Maximum number of characters kept

    Returns:
        The text itself, or its first `limit` characters followed by "..."
    """
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
